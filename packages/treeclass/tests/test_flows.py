import asyncio

import pytest

from treeclass import array, enumeration, flow, model, optional, string, tree
from treeclass.decorators import NodeAttribute
from treeclass.exceptions import NonCallableMemberError, TreeProtectionError


@model
class Feed:
    entries = array(string)
    status = optional(enumeration(["idle", "loading", "done"]), "idle")

    @flow
    async def load(self, names):
        self.status = "loading"
        await asyncio.sleep(0)
        self.entries.extend(names)
        self.status = "done"
        return len(self.entries)


@pytest.mark.asyncio
async def test_flow_steps_run_as_actions():
    feed = Feed.create()

    result = await feed.load(["a", "b"])

    assert result == 2
    assert feed.status == "done"
    assert list(feed.entries) == ["a", "b"]


@pytest.mark.asyncio
async def test_flow_does_not_unprotect_outside_writes_while_suspended():
    @model
    class Job:
        state = optional(string, "new")

        @flow
        async def run(self, gate):
            self.state = "waiting"
            await gate.wait()
            self.state = "finished"

    gate = asyncio.Event()
    job = Job.create()
    task = asyncio.ensure_future(job.run(gate))
    await asyncio.sleep(0)

    assert job.state == "waiting"
    with pytest.raises(TreeProtectionError):
        job.state = "hijacked"

    gate.set()
    await task
    assert job.state == "finished"


@pytest.mark.asyncio
async def test_flow_errors_propagate():
    @model
    class Failing:
        @flow
        async def explode(self):
            await asyncio.sleep(0)
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await Failing.create().explode()


@pytest.mark.asyncio
async def test_plain_function_flow_returns_its_result():
    @model
    class Quick:
        count = optional(tree.integer, 0)

        @flow
        def bump(self):
            self.count += 1
            return "ok"

    quick = Quick.create()

    assert await quick.bump() == "ok"
    assert quick.count == 1


def test_flow_member_is_installed_as_a_flow_runner():
    feed = Feed.create()

    assert isinstance(vars(Feed)["load"], NodeAttribute)
    assert callable(feed.load)
    assert "load" in tree.get_node(feed).actions


def test_non_callable_flow_is_rejected():
    with pytest.raises(NonCallableMemberError) as err:
        @model
        class Broken:
            load = flow("nope")

    assert err.value.category == "flows"
