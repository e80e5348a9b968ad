"""Tests for the transform engine."""

import asyncio
import datetime
import decimal
import pytest
from async_stringify.engine import TransformEngine
from async_stringify.transforms import identity
from async_stringify.types import (
    CircularReferenceError,
    ErrorType,
    TraversalStats,
    UnrepresentableValueError,
    UNDEFINED,
)


class TestTransformEngineResolve:
    """Tests for tree resolution."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = TransformEngine()

    @pytest.mark.asyncio
    async def test_resolves_plain_document(self, sample_document):
        """Identity transform yields an equal plain tree."""
        result = await self.engine.resolve(sample_document, identity)

        assert result == sample_document
        assert result is not sample_document

    @pytest.mark.asyncio
    async def test_root_call_uses_synthetic_context(self):
        """The root is transformed with key '' inside a {'': root} context."""
        seen = []

        async def transform(context, key, value):
            seen.append((dict(context) if isinstance(context, dict) else context, key))
            return value

        await self.engine.resolve(7, transform)

        assert seen == [({"": 7}, "")]

    @pytest.mark.asyncio
    async def test_root_can_be_replaced(self):
        """The transform may substitute the whole document."""
        async def transform(context, key, value):
            if key == "":
                return {"wrapped": value}
            return value

        assert await self.engine.resolve([1, 2], transform) == {"wrapped": [1, 2]}

    @pytest.mark.asyncio
    async def test_children_get_owning_container_as_context(self):
        """Each child sees its parent container and can inspect siblings."""
        data = {"price": 10, "quantity": 3, "total": None}

        async def transform(context, key, value):
            if key == "total":
                return context["price"] * context["quantity"]
            return value

        result = await self.engine.resolve(data, transform)

        assert result == {"price": 10, "quantity": 3, "total": 30}

    @pytest.mark.asyncio
    async def test_transform_call_order_is_depth_first(self, recorder):
        """Transforms run strictly sequentially in document order."""
        data = {"a": [1, {"b": 2}], "c": 3}

        await self.engine.resolve(data, recorder)

        assert [key for key, _ in recorder.calls] == ["", "a", "0", "1", "b", "c"]

    @pytest.mark.asyncio
    async def test_siblings_are_not_fanned_out(self):
        """A slow early sibling finishes before the next one starts."""
        events = []

        async def transform(context, key, value):
            if key in ("slow", "fast"):
                events.append(f"start:{key}")
                await asyncio.sleep(0.01 if key == "slow" else 0)
                events.append(f"end:{key}")
            return value

        await self.engine.resolve({"slow": 1, "fast": 2}, transform)

        assert events == ["start:slow", "end:slow", "start:fast", "end:fast"]

    @pytest.mark.asyncio
    async def test_sync_transform_is_accepted(self):
        """A plain function returning values directly also works."""
        def transform(context, key, value):
            return value * 2 if isinstance(value, int) else value

        assert await self.engine.resolve({"x": 2}, transform) == {"x": 4}


class TestTransformEngineElision:
    """Tests for undefined and function handling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = TransformEngine()

    @pytest.mark.asyncio
    async def test_undefined_member_is_omitted(self):
        """Keys resolving to UNDEFINED disappear from objects."""
        async def transform(context, key, value):
            return UNDEFINED if key == "private" else value

        result = await self.engine.resolve({"public": "visible", "private": "hidden"}, transform)

        assert result == {"public": "visible"}

    @pytest.mark.asyncio
    async def test_function_member_is_omitted(self):
        """Function-valued members are dropped from objects."""
        result = await self.engine.resolve({"name": "x", "fn": lambda: 1}, identity)

        assert result == {"name": "x"}

    @pytest.mark.asyncio
    async def test_sequence_slots_become_null(self):
        """UNDEFINED and functions in sequences become None, keeping indices."""
        result = await self.engine.resolve([1, UNDEFINED, 3, print], identity)

        assert result == [1, None, 3, None]

    @pytest.mark.asyncio
    async def test_none_is_kept(self):
        """None is a real null, not an omission."""
        result = await self.engine.resolve({"a": None}, identity)

        assert result == {"a": None}

    @pytest.mark.asyncio
    async def test_root_undefined_is_returned(self):
        """An UNDEFINED root is handed back unchanged."""
        assert await self.engine.resolve(UNDEFINED, identity) is UNDEFINED


class TestTransformEngineHooks:
    """Tests for serialization hooks."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = TransformEngine()

    @pytest.mark.asyncio
    async def test_datetime_uses_isoformat(self):
        """Dates serialize themselves."""
        moment = datetime.datetime(2024, 1, 1, 12, 30)

        result = await self.engine.resolve({"at": moment}, identity)

        assert result == {"at": "2024-01-01T12:30:00"}

    @pytest.mark.asyncio
    async def test_to_json_hook_output_is_not_transformed(self, recorder):
        """Hook output is taken as-is, without further transform calls."""
        class Point:
            def to_json(self):
                return {"x": 1, "y": 2}

        result = await self.engine.resolve({"p": Point()}, recorder)

        assert result == {"p": {"x": 1, "y": 2}}
        assert [key for key, _ in recorder.calls] == ["", "p"]

    @pytest.mark.asyncio
    async def test_hook_output_is_not_cycle_checked(self):
        """A hook may return its own ancestor; it is not re-validated."""
        data = {}

        class Back:
            def to_json(self):
                return data

        data["back"] = Back()

        result = await self.engine.resolve(data, identity)

        assert result["back"] is data


class TestTransformEngineObjects:
    """Tests for plain objects."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = TransformEngine()

    @pytest.mark.asyncio
    async def test_object_public_attributes(self):
        """Plain objects contribute their public instance attributes."""
        class User:
            role = "class-level"

            def __init__(self):
                self.name = "Alice"
                self._token = "hidden"

        assert await self.engine.resolve(User(), identity) == {"name": "Alice"}

    @pytest.mark.asyncio
    async def test_non_string_keys(self):
        """Scalar keys are coerced like json.dumps, others skipped."""
        data = {1: "a", False: "b", None: "c", (1, 2): "d", "s": "e"}

        result = await self.engine.resolve(data, identity)

        assert result == {"1": "a", "false": "b", "null": "c", "s": "e"}

    @pytest.mark.asyncio
    async def test_colliding_coerced_keys(self):
        """Keys coercing to the same text keep the last value."""
        result = await self.engine.resolve({1: "a", "1": "b"}, identity)

        assert result == {"1": "b"}


class TestTransformEngineErrors:
    """Tests for fatal errors."""

    def setup_method(self):
        """Set up test fixtures."""
        self.engine = TransformEngine()

    @pytest.mark.asyncio
    async def test_self_reference(self):
        """A dict containing itself is a cycle."""
        data = {"a": 1}
        data["self"] = data

        with pytest.raises(CircularReferenceError, match="circular structure") as exc_info:
            await self.engine.resolve(data, identity)

        assert exc_info.value.error_type == ErrorType.CIRCULAR
        assert exc_info.value.context["path"] == ["self"]

    @pytest.mark.asyncio
    async def test_deep_cycle(self):
        """A cycle closing several levels down is detected."""
        a = {}
        a["b"] = {"c": {"back": a}}

        with pytest.raises(CircularReferenceError) as exc_info:
            await self.engine.resolve({"a": a}, identity)

        assert exc_info.value.context["path"] == ["a", "b", "c", "back"]

    @pytest.mark.asyncio
    async def test_cycle_in_sequence(self):
        """Lists containing themselves are cycles too."""
        items = [1, 2]
        items.append(items)

        with pytest.raises(CircularReferenceError):
            await self.engine.resolve(items, identity)

    @pytest.mark.asyncio
    async def test_circular_error_is_value_error(self):
        """Cycle errors match json's ValueError family."""
        data = []
        data.append(data)

        with pytest.raises(ValueError):
            await self.engine.resolve(data, identity)

    @pytest.mark.asyncio
    async def test_diamond_is_not_a_cycle(self):
        """The same container under two siblings serializes twice."""
        shared = {"v": 1}

        result = await self.engine.resolve({"left": shared, "right": [shared, shared]}, identity)

        assert result == {"left": {"v": 1}, "right": [{"v": 1}, {"v": 1}]}

    @pytest.mark.asyncio
    async def test_decimal_is_unrepresentable(self):
        """Decimal transform results are rejected with their type name."""
        with pytest.raises(UnrepresentableValueError, match="Decimal") as exc_info:
            await self.engine.resolve({"amount": decimal.Decimal("1.5")}, identity)

        assert exc_info.value.context["type"] == "Decimal"
        assert exc_info.value.context["path"] == ["amount"]
        assert isinstance(exc_info.value, TypeError)

    @pytest.mark.asyncio
    async def test_unrepresentable_can_be_converted_by_transform(self):
        """A transform that converts the scalar first avoids the error."""
        async def transform(context, key, value):
            if isinstance(value, decimal.Decimal):
                return str(value)
            return value

        assert await self.engine.resolve([decimal.Decimal("2.50")], transform) == ["2.50"]

    @pytest.mark.asyncio
    async def test_transform_error_propagates_unchanged(self):
        """Errors from the transform are not wrapped."""
        class FetchFailed(Exception):
            pass

        async def transform(context, key, value):
            if key == "remote":
                raise FetchFailed("boom")
            return value

        with pytest.raises(FetchFailed, match="boom"):
            await self.engine.resolve({"remote": 1}, transform)

    @pytest.mark.asyncio
    async def test_ancestor_set_unwinds_after_failure(self):
        """Failed calls leave no ancestors behind for later calls."""
        shared = {"x": 1}
        fail = {"on": True}

        async def transform(context, key, value):
            if key == "x" and fail["on"]:
                raise RuntimeError("first call fails")
            return value

        with pytest.raises(RuntimeError):
            await self.engine.resolve(shared, transform)

        fail["on"] = False
        assert await self.engine.resolve({"a": shared, "b": shared}, transform) == {
            "a": {"x": 1},
            "b": {"x": 1},
        }


class TestTraversalStats:
    """Tests for traversal counters."""

    @pytest.mark.asyncio
    async def test_counts(self):
        """Counters reflect transform calls, containers and depth."""
        stats = TraversalStats()

        await TransformEngine().resolve({"a": [1, 2], "b": {"c": 3}}, identity, stats)

        assert stats.transform_calls == 6
        assert stats.containers_entered == 3
        assert stats.max_depth == 2
