"""Tests for doublet.mock and doublet.factory: substitutes for real Python types."""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol

import pytest

from doublet import (
    DefaultValue,
    It,
    Mock,
    MockBehavior,
    MockError,
    MockSequence,
    NotAMockError,
    Out,
    Ref,
    SequenceViolationError,
    Times,
    UnsetMemberError,
    VerificationError,
    mock_of,
)


class Repository(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def put(self, key: str, value: str, ttl: int = 60) -> None:
        ...

    @abstractmethod
    def count(self) -> int:
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def fetch(self, key: str) -> int:
        ...


class Parser(ABC):
    @abstractmethod
    def try_parse(self, text: str, result: Ref) -> bool:
        ...


class TypedParser(ABC):
    @abstractmethod
    def try_parse(self, text: str, result: Out[int]) -> bool:
        ...


class Bumper(ABC):
    @abstractmethod
    def bump(self, value: Ref[int]) -> None:
        ...


class Splitter(ABC):
    @abstractmethod
    def split(self, text: str, head: Ref, tail: Ref) -> None:
        ...


class Calculator:
    def add(self, a: int, b: int) -> int:
        return a + b

    @property
    def label(self) -> str:
        return "calc"

    @staticmethod
    def version() -> str:
        return "1.0"


class Report:
    def render(self) -> str:
        return f"{self._header()}\n{self._body}"

    def _header(self) -> str:
        return "real header"

    @property
    def _body(self) -> str:
        return "body"

    def __secret(self) -> str:
        return "mangled"


class Greeter(Protocol):
    greeting: str

    def greet(self, name: str) -> str:
        ...


class Node(ABC):
    @property
    @abstractmethod
    def child(self) -> "Node":
        ...

    @abstractmethod
    def value(self) -> int:
        ...


class Closeable(ABC):
    @abstractmethod
    def close(self) -> None:
        ...


class Button(ABC):
    @abstractmethod
    def add_clicked(self, handler: Callable[[int], None]) -> None:
        ...

    @abstractmethod
    def remove_clicked(self, handler: Callable[[int], None]) -> None:
        ...

    @abstractmethod
    def press(self) -> None:
        ...


@pytest.fixture
def repo(factory):
    return factory.create(Repository)


class TestProxyBasics:
    def test_proxy_is_instance_of_spec(self, repo):
        assert isinstance(repo.object, Repository)

    def test_mock_get_round_trip(self, repo):
        assert Mock.get(repo.object) is repo
        assert Mock.get(repo) is repo

    def test_mock_get_rejects_plain_objects(self):
        with pytest.raises(NotAMockError):
            Mock.get(object())
        assert issubclass(NotAMockError, TypeError)
        assert issubclass(NotAMockError, MockError)

    def test_identity_equality_and_repr(self, factory, repo):
        other = factory.create(Repository)
        assert repo.object == repo.object
        assert repo.object != other.object
        assert repr(repo.object) == "<mock Repository>"

    def test_unknown_attribute(self, repo):
        with pytest.raises(AttributeError):
            repo.object.missing()
        with pytest.raises(AttributeError, match="no mockable member"):
            repo.setup("missing")


class TestMethods:
    def test_setup_returns(self, repo):
        repo.setup("get", "a").returns("A")
        assert repo.object.get("a") == "A"
        assert repo.object.get("b") is None

    def test_unmatched_int_defaults_to_zero(self, repo):
        assert repo.object.count() == 0

    def test_void_method_returns_none(self, repo):
        assert repo.object.put("k", "v") is None

    def test_defaults_applied_when_binding(self, repo):
        repo.object.put("k", "v")
        repo.verify("put", "k", "v")
        repo.verify("put", "k", "v", ttl=60)
        repo.verify("put", It.is_any(), It.is_any(), It.is_any(), times=Times.once())

    def test_keyword_arguments_bind_to_positions(self, repo):
        repo.object.put(key="k", value="v", ttl=5)
        repo.verify("put", "k", "v", 5)
        with pytest.raises(VerificationError):
            repo.verify("put", "k", "v")

    def test_bad_call_raises_type_error_and_is_not_recorded(self, repo):
        with pytest.raises(TypeError):
            repo.object.get()
        assert repo.invocations == []

    def test_strict_mock(self, factory):
        strict = factory.create(Repository, behavior=MockBehavior.STRICT)
        with pytest.raises(UnsetMemberError, match="'count'"):
            strict.object.count()

    def test_setup_sequence(self, repo):
        repo.setup_sequence("count").returns(1).returns(2).throws(RuntimeError("done"))
        assert repo.object.count() == 1
        assert repo.object.count() == 2
        with pytest.raises(RuntimeError, match="done"):
            repo.object.count()


class TestAsyncMethods:
    @pytest.mark.asyncio
    async def test_plain_value_is_awaited_result(self, repo):
        repo.setup("fetch", "k").returns(5)
        assert await repo.object.fetch("k") == 5

    @pytest.mark.asyncio
    async def test_returns_async(self, repo):
        repo.setup("fetch", "k").returns_async(6)
        assert await repo.object.fetch("k") == 6

    @pytest.mark.asyncio
    async def test_unmatched_async_default(self, repo):
        assert await repo.object.fetch("other") == 0
        repo.verify("fetch", "other")


class TestProperties:
    def test_setup_get(self, repo):
        repo.setup_get("name").returns("repo")
        assert repo.object.name == "repo"
        repo.verify_get("name", times=Times.once())

    def test_setup_by_name_means_getter(self, repo):
        repo.setup("name").returns("by name")
        assert repo.object.name == "by name"

    def test_property_assignment_is_recorded(self, repo):
        repo.object.name = "x"
        repo.verify_set("name", "x")
        repo.verify_set("name")
        with pytest.raises(VerificationError):
            repo.verify_set("name", "y")

    def test_setup_property_backing_storage(self, repo):
        repo.setup_property("name", "initial")
        assert repo.object.name == "initial"
        repo.object.name = "new"
        assert repo.object.name == "new"

    def test_setup_all_properties(self, repo):
        repo.setup_all_properties()
        assert repo.object.name is None
        repo.object.name = "z"
        assert repo.object.name == "z"

    def test_property_helpers_reject_methods(self, repo):
        with pytest.raises(AttributeError, match="not a property"):
            repo.setup_get("count")


class TestOutputParameters:
    def test_try_parse(self, factory):
        parser = factory.create(Parser)
        parser.setup("try_parse", "42", It.out(int)).out_value(1, 42).returns(True)

        box = Ref()
        assert parser.object.try_parse("42", box) is True
        assert box.value == 42

        other = Ref()
        assert parser.object.try_parse("nope", other) is False
        assert other.value == 0

    def test_callback_ref_out(self, factory):
        splitter = factory.create(Splitter)

        def fill(args):
            head, _, tail = args[0].partition(" ")
            args[1] = head
            args[2] = tail

        splitter.setup("split", It.is_any(str), It.out(), It.out()).callback_ref_out(fill)
        head, tail = Ref(), Ref()
        assert splitter.object.split("hello world", head, tail) is None
        assert (head.value, tail.value) == ("hello", "world")

    def test_out_annotation_defaults_without_setup(self, factory):
        parser = factory.create(TypedParser)
        box = Ref(7)
        assert parser.object.try_parse("nope", box) is False
        assert box.value == 0

    def test_out_annotation_defaults_when_setup_leaves_it_unwritten(self, factory):
        parser = factory.create(TypedParser)
        parser.setup("try_parse", "x", It.out()).returns(True)
        box = Out(7)
        assert parser.object.try_parse("x", box) is True
        assert box.value == 0

    def test_ref_position_keeps_value_on_unmatched_call(self, factory):
        bumper = factory.create(Bumper)
        bumper.setup("bump", It.ref(1)).ref_value(0, 2)
        box = Ref(5)
        bumper.object.bump(box)
        assert box.value == 5

    def test_history_keeps_value_passed_in(self, factory):
        bumper = factory.create(Bumper)
        bumper.setup("bump", It.ref()).callback_ref_out(lambda args: args.__setitem__(0, args[0] + 1))
        box = Ref(5)
        bumper.object.bump(box)
        assert box.value == 6
        bumper.verify("bump", It.ref(5))
        bumper.verify("bump", It.ref(6), times=Times.never())
        assert bumper.invocations[0].arguments == (5,)


class TestCallBase:
    def test_concrete_members_run_when_enabled(self, factory):
        calc = factory.create(Calculator, call_base=True)
        assert calc.object.add(2, 3) == 5
        assert calc.object.label == "calc"
        assert calc.object.version() == "1.0"

    def test_setups_still_win(self, factory):
        calc = factory.create(Calculator, call_base=True)
        calc.setup("add", 1, 1).returns(10)
        assert calc.object.add(1, 1) == 10
        assert calc.object.add(1, 2) == 3

    def test_disabled_by_default(self, factory):
        calc = factory.create(Calculator)
        assert isinstance(calc.object, Calculator)
        assert calc.object.add(2, 3) == 0


class TestProtocols:
    def test_protocol_members(self, factory):
        greeter = factory.create(Greeter)
        greeter.setup("greet", It.is_any(str)).returns_computed(lambda name: f"hi {name}")
        greeter.setup_get("greeting").returns("hello")
        assert greeter.object.greet("ada") == "hi ada"
        assert greeter.object.greeting == "hello"


class TestNestedMocks:
    def test_fluent_chain(self, factory):
        root = factory.create(Node, default_value=DefaultValue.MOCK)
        child = root.object.child
        assert isinstance(child, Node)
        assert root.object.child is child
        assert child.child.value() == 0
        Mock.get(child).verify("value", times=Times.never())
        Mock.get(child.child).verify("value")

    def test_natural_defaults_do_not_nest(self, factory):
        root = factory.create(Node)
        assert root.object.child is None


class TestAdditionalInterfaces:
    def test_as_adds_interface(self, repo):
        repo.as_(Closeable)
        assert isinstance(repo.object, Closeable)
        repo.setup("close").verifiable()
        repo.object.close()
        repo.verify("close")
        repo.verify_all()

    def test_as_requires_abc(self, repo):
        with pytest.raises(TypeError):
            repo.as_(Calculator)


class TestEvents:
    def test_subscribe_and_raise(self, factory):
        button = factory.create(Button)
        clicks = []

        def on_click(x):
            clicks.append(x)

        button.object.add_clicked(on_click)
        assert button.raise_event("clicked", 3) == 1
        button.object.remove_clicked(on_click)
        button.raise_event("clicked", 4)
        assert clicks == [3]
        button.verify_add("clicked", times=Times.once())
        button.verify_remove("clicked", on_click)

    def test_setup_raises_event(self, factory):
        button = factory.create(Button)
        clicks = []
        button.object.add_clicked(clicks.append)
        button.setup("press").raises("clicked", 1)
        button.object.press()
        button.object.press()
        assert clicks == [1, 1]


class TestUntypedMocks:
    def test_any_attribute_is_a_method(self, factory):
        mock = factory.create()
        mock.setup("anything", 1).returns(2)
        assert mock.object.anything(1) == 2
        assert mock.object.other() is None
        mock.verify("other")

    def test_keywords_rejected(self, factory):
        mock = factory.create()
        with pytest.raises(TypeError):
            mock.object.anything(x=1)

    def test_call_with_other_arity_does_not_match(self, factory):
        mock = factory.create()
        mock.setup("send", 1).returns("one")
        assert mock.object.send(1, 2) is None
        assert mock.object.send(1) == "one"
        mock.verify("send", 1)
        mock.verify("send", 1, 2)
        mock.verify("send", It.is_any(), times=Times.once())


class TestProtectedMembers:
    def test_setup_protected_method(self, factory):
        report = factory.create(Report, call_base=True)
        report.protected().setup("_header").returns("HEAD")
        assert report.object.render() == "HEAD\nbody"
        report.protected().verify("_header", times=Times.once())

    def test_setup_get_protected_property(self, factory):
        report = factory.create(Report, call_base=True)
        report.protected().setup_get("_body").returns("stub")
        assert report.object.render() == "real header\nstub"
        report.verify("render")
        report.protected().verify("_header")
        report.protected().verify_get("_body")
        report.verify_no_other_calls()

    def test_public_surface_rejects_protected_names(self, factory):
        report = factory.create(Report)
        with pytest.raises(AttributeError, match="protected"):
            report.setup("_header")
        with pytest.raises(AttributeError, match="not a protected member name"):
            report.protected().setup("render")
        with pytest.raises(AttributeError, match="no protected member"):
            report.protected().setup("_missing")

    def test_mangled_names_are_not_mocked(self, factory):
        report = factory.create(Report)
        with pytest.raises(AttributeError, match="not a protected member name"):
            report.protected().setup("_Report__secret")
        assert report.object._Report__secret() == "mangled"


class TestMockOf:
    def test_properties_preset(self):
        repo = mock_of(Repository, name="preset")
        assert isinstance(repo, Repository)
        assert repo.name == "preset"
        Mock.get(repo).verify_get("name")


class TestSequencesAcrossMocks:
    def test_order_enforced(self, factory):
        seq = MockSequence()
        repo = factory.create(Repository)
        closer = factory.create(Closeable)
        repo.setup("count").in_sequence(seq).returns(1)
        closer.setup("close").in_sequence(seq)

        with pytest.raises(SequenceViolationError):
            closer.object.close()
        assert repo.object.count() == 1
        closer.object.close()


class TestChaosAndReset:
    def test_chaos_through_proxy(self, repo):
        repo.configure_chaos(failure_rate=1.0, possible_exceptions=[TimeoutError("chaos")])
        with pytest.raises(TimeoutError, match="chaos"):
            repo.object.count()
        assert repo.chaos_statistics.total_invocations == 1
        repo.configure_chaos()
        assert repo.object.count() == 0

    def test_chaos_statistics_reset_and_snapshot(self, repo):
        repo.configure_chaos(failure_rate=0.0)
        repo.object.count()
        before = repo.chaos_statistics
        repo.object.count()
        assert before.total_invocations == 1
        assert repo.chaos_statistics.total_invocations == 2
        repo.reset_chaos_statistics()
        assert repo.chaos_statistics.total_invocations == 0

    def test_verify_no_other_calls(self, repo):
        repo.object.count()
        repo.object.get("a")
        repo.verify("count")
        with pytest.raises(VerificationError, match="First unverified call: 'get'"):
            repo.verify_no_other_calls()
        repo.verify("get", "a")
        repo.verify_no_other_calls()

    def test_reset(self, repo):
        repo.setup("count").returns(9)
        repo.object.count()
        repo.reset()
        assert repo.setups == []
        assert repo.object.count() == 0
