# tests/application/steps/test_organizer.py
import pytest

from application.steps.base import Step
from application.steps.organizer import Organizer
from domain.context import Context
from domain.exceptions import CompensationError
from domain.hooks import HookRegistry
from infrastructure import runtime
from infrastructure.config.settings import Settings


def tracked(name, perform=None, rollback=None):
    """Step type that records construction, perform and rollback in context["calls"]."""

    class Tracked(Step):
        hook_registry = HookRegistry()

        def __init__(self, context=None, **fields):
            super().__init__(context, **fields)
            self.context["calls"].append(f"{name}.new")

        def perform(self):
            self.context["calls"].append(f"{name}.perform")
            if perform is not None:
                perform(self)

        def rollback(self):
            self.context["calls"].append(f"{name}.rollback")
            if rollback is not None:
                rollback(self)

    Tracked.__name__ = name
    return Tracked


def fail(step):
    step.fail(error="declined")


def explode(step):
    raise RuntimeError("boom")


def raise_key_error(step):
    raise KeyError("missing")


def raise_value_error(step):
    raise ValueError("bad")


def organizer(*steps):
    class Chain(Organizer):
        hook_registry = HookRegistry()

    Chain.organize(*steps)
    return Chain


class TestOrganizer:
    def test_runs_steps_in_order_with_shared_context(self):
        a, b, c = tracked("A"), tracked("B"), tracked("C")

        result = organizer(a, b, c).run(calls=[])

        assert result.context.success is True
        assert result.context["calls"] == [
            "A.new", "A.perform",
            "B.new", "B.perform",
            "C.new", "C.perform",
        ]
        assert [type(s).__name__ for s in result.performed] == ["A", "B", "C"]
        assert all(s.context is result.context for s in result.performed)

    def test_failure_rolls_back_completed_steps_in_reverse(self):
        a, b, c, d = tracked("A"), tracked("B"), tracked("C", perform=fail), tracked("D")

        result = organizer(a, b, c, d).run(calls=[])

        assert result.context.failure is True
        assert result.context["error"] == "declined"
        assert result.context["calls"] == [
            "A.new", "A.perform",
            "B.new", "B.perform",
            "C.new", "C.perform",
            "B.rollback", "A.rollback",
        ]

    def test_middle_failure_never_constructs_later_steps(self):
        a, b, c = tracked("A"), tracked("B", perform=fail), tracked("C")

        result = organizer(a, b, c).run(calls=[])

        calls = result.context["calls"]
        assert calls.count("A.rollback") == 1
        assert "B.rollback" not in calls
        assert "C.new" not in calls
        assert "C.rollback" not in calls

    def test_error_rolls_back_then_propagates(self):
        a, b, c = tracked("A"), tracked("B", perform=explode), tracked("C")
        ctx = Context.build(calls=[])

        with pytest.raises(RuntimeError, match="boom"):
            organizer(a, b, c).run(ctx)

        assert ctx["calls"] == ["A.new", "A.perform", "B.new", "B.perform", "A.rollback"]

    def test_error_in_step_construction_compensates(self):
        def broken_factory(context):
            raise LookupError("no such step")

        a = tracked("A")
        ctx = Context.build(calls=[])

        with pytest.raises(LookupError):
            organizer(a, broken_factory).run(ctx)

        assert ctx["calls"] == ["A.new", "A.perform", "A.rollback"]

    def test_step_failing_in_after_hook_rolls_itself_back_once(self):
        a, b = tracked("A"), tracked("B")
        b.after(fail)

        result = organizer(a, b).run(calls=[])

        assert result.context["calls"] == [
            "A.new", "A.perform",
            "B.new", "B.perform", "B.rollback",
            "A.rollback",
        ]

    def test_organizer_rollback_undoes_performed_steps(self):
        a, b = tracked("A"), tracked("B")
        chain = organizer(a, b)(calls=[])
        chain.perform_with_hooks()

        chain.rollback()

        assert chain.context["calls"][-2:] == ["B.rollback", "A.rollback"]
        assert chain.performed == []

    def test_run_rollback_on_fresh_organizer_is_a_no_op(self):
        result = organizer(tracked("A")).run_rollback(calls=[])
        assert result.context["calls"] == []

    def test_accepts_factories(self):
        a = tracked("A")

        def build_a(context):
            context["built"] = True
            return a(context)

        result = organizer(build_a).run(calls=[])

        assert result.context["built"] is True
        assert result.context["calls"] == ["A.new", "A.perform"]

    def test_organizer_hooks_wrap_the_whole_chain(self):
        chain = organizer(tracked("A"))
        chain.before(lambda step: step.context["calls"].append("chain.before"))
        chain.after(lambda step: step.context["calls"].append("chain.after"))

        result = chain.run(calls=[])

        assert result.context["calls"] == ["chain.before", "A.new", "A.perform", "chain.after"]


class TestNestedOrganizer:
    def test_failed_inner_organizer_compensates_itself_first(self):
        inner = organizer(tracked("B"), tracked("C", perform=fail))
        outer = organizer(tracked("A"), inner, tracked("D"))

        result = outer.run(calls=[])

        assert result.context.failure is True
        assert result.context["calls"] == [
            "A.new", "A.perform",
            "B.new", "B.perform",
            "C.new", "C.perform",
            "B.rollback",
            "A.rollback",
        ]

    def test_completed_inner_organizer_is_rolled_back_depth_first(self):
        inner = organizer(tracked("B"), tracked("C"))
        outer = organizer(tracked("A"), inner, tracked("D", perform=fail))

        result = outer.run(calls=[])

        assert result.context["calls"] == [
            "A.new", "A.perform",
            "B.new", "B.perform",
            "C.new", "C.perform",
            "D.new", "D.perform",
            "C.rollback", "B.rollback",
            "A.rollback",
        ]

    def test_error_in_inner_organizer_compensates_both_levels(self):
        inner = organizer(tracked("B"), tracked("C", perform=explode))
        outer = organizer(tracked("A"), inner)
        ctx = Context.build(calls=[])

        with pytest.raises(RuntimeError, match="boom"):
            outer.run(ctx)

        assert ctx["calls"][-2:] == ["B.rollback", "A.rollback"]


class TestRollbackErrors:
    def test_compensation_continues_past_rollback_errors(self):
        a = tracked("A")
        b = tracked("B", rollback=explode)
        c = tracked("C", perform=fail)

        result = organizer(a, b, c).run(calls=[])

        assert result.context.failure is True
        assert result.context["calls"][-2:] == ["B.rollback", "A.rollback"]
        assert [str(e) for e in result.rollback_errors] == ["boom"]

    def test_triggering_error_is_reraised_unchanged(self):
        a = tracked("A", rollback=explode)
        b = tracked("B", perform=raise_key_error)
        ctx = Context.build(calls=[])

        with pytest.raises(KeyError):
            organizer(a, b).run(ctx)

        assert ctx["calls"][-1] == "A.rollback"

    def test_rollback_errors_surface_when_configured(self):
        runtime.configure(settings=Settings(raise_rollback_errors=True))
        a = tracked("A", rollback=explode)
        b = tracked("B", rollback=explode)
        c = tracked("C", perform=fail)

        with pytest.raises(CompensationError) as excinfo:
            organizer(a, b, c).run(calls=[])

        assert len(excinfo.value.errors) == 2
        assert excinfo.value.cause is None

    def test_surfaced_rollback_errors_chain_the_trigger(self):
        runtime.configure(settings=Settings(raise_rollback_errors=True))
        a = tracked("A", rollback=explode)
        b = tracked("B", perform=raise_value_error)

        with pytest.raises(CompensationError) as excinfo:
            organizer(a, b).run(calls=[])

        assert isinstance(excinfo.value.__cause__, ValueError)
        assert excinfo.value.cause is excinfo.value.__cause__


class TestCheckoutScenario:
    def test_charge_failure_rolls_back_user_lookup(self):
        class FindUser(Step):
            hook_registry = HookRegistry()

            def perform(self):
                self.context.user = {"id": 1, "email": self.context.email}
                self.context.log.append("find")

            def rollback(self):
                self.context.log.append("unfind")

        class ChargeCard(Step):
            hook_registry = HookRegistry()

            def perform(self):
                if self.context.amount > 100:
                    self.fail(error="card declined")
                    return
                self.context.charge = self.context.amount

            def rollback(self):
                self.context.log.append("refund")

        class SendReceipt(Step):
            hook_registry = HookRegistry()

            def perform(self):
                self.context.log.append("receipt")

        class PlaceOrder(Organizer):
            hook_registry = HookRegistry()
            steps = (FindUser, ChargeCard, SendReceipt)

        result = PlaceOrder.run(email="a@b.com", amount=500, log=[])

        assert result.context.failure is True
        assert result.context.error == "card declined"
        assert result.context.log == ["find", "unfind"]
        assert result.context.charge is None

        ok = PlaceOrder.run(email="a@b.com", amount=50, log=[])
        assert ok.context.success is True
        assert ok.context.log == ["find", "receipt"]
        assert ok.context.charge == 50


def test_organizer_logs_halt_and_compensation(log_store):
    organizer(tracked("A"), tracked("B", perform=fail)).run(calls=[])

    events = log_store.events("test")
    assert "organizer.halt" in events
    assert "organizer.compensate" in events
    assert events.index("organizer.halt") < events.index("organizer.compensate")
    compensate = next(e for e in log_store.list("test") if e.event == "organizer.compensate")
    assert compensate.fields["steps"] == 1
    assert compensate.fields["organizer"] == "Chain"


def test_swallowed_rollback_errors_are_logged_as_warnings(log_store):
    organizer(tracked("A", rollback=explode), tracked("B", perform=fail)).run(calls=[])

    entry = next(e for e in log_store.list("test") if e.event == "organizer.rollback_error")
    assert entry.level == "warning"
    assert entry.fields["step"] == "A"
