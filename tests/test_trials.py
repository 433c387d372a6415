"""Trial capability, keyed-trial registry and built-in kinds."""
import pickle

import pytest

from experiment_engine.trials import (
    AbstractTrial,
    KeyedTrial,
    TrialNotImplementedError,
    conduct,
    get_trial_kind,
    register_trial,
    registered_tags,
    resulttype,
    unregister_trial,
)
from experiment_engine.trials.coin import CoinTrial, toss


@pytest.fixture
def cleanup_tags():
    tags = []
    yield tags
    for tag in tags:
        unregister_trial(tag)


def test_incomplete_trial_cannot_be_instantiated():
    class NoResultType(AbstractTrial):
        def conduct(self):
            return 1

    class NoConduct(AbstractTrial):
        @classmethod
        def resulttype(cls):
            return int

    with pytest.raises(TypeError):
        NoResultType()
    with pytest.raises(TypeError):
        NoConduct()


def test_builtin_tags_registered():
    assert {"coin", "gaussian"} <= set(registered_tags())
    assert get_trial_kind("coin").resulttype is bool
    assert get_trial_kind("gaussian").resulttype is float


def test_keyed_trial_dispatches_on_tag(cleanup_tags):
    @register_trial("double", int)
    def double(configuration) -> int:
        return 2 * configuration["x"]

    @register_trial("label", str)
    def label(configuration) -> str:
        return f"x={configuration['x']}"

    cleanup_tags.extend(["double", "label"])
    assert conduct(KeyedTrial("double", {"x": 21})) == 42
    assert conduct(KeyedTrial("label", {"x": 21})) == "x=21"
    assert resulttype(KeyedTrial("double", {})) is int
    assert resulttype(KeyedTrial("label", {})) is str
    assert KeyedTrial.resulttype("label") is str


def test_unknown_tag_raises():
    trial = KeyedTrial("not-registered", {"p": 0.1})
    with pytest.raises(TrialNotImplementedError, match="not-registered"):
        conduct(trial)
    with pytest.raises(TrialNotImplementedError):
        resulttype(trial)


def test_keyed_resulttype_needs_a_tag():
    with pytest.raises(TrialNotImplementedError):
        resulttype(KeyedTrial)


def test_non_trials_are_rejected():
    with pytest.raises(TrialNotImplementedError):
        conduct(42)
    with pytest.raises(TrialNotImplementedError):
        resulttype(int)


def test_mismatched_annotation_rejected_at_registration():
    with pytest.raises(TypeError, match="declares bool"):
        @register_trial("mismatch", bool)
        def mismatch(configuration) -> str:
            return "heads"

    assert "mismatch" not in registered_tags()


def test_duplicate_registration_rejected():
    with pytest.raises(KeyError):
        @register_trial("coin", bool)
        def coin_again(configuration) -> bool:
            return True


def test_resulttype_must_be_a_class():
    with pytest.raises(TypeError):
        register_trial("bad", "bool")


def test_keyed_trial_is_immutable():
    trial = KeyedTrial("coin", {"p": 0.2})
    with pytest.raises(AttributeError):
        trial.tag = "other"


def test_keyed_trial_repr_hides_configuration_values():
    assert repr(KeyedTrial("coin", {"p": 0.2, "seed": 3})) == "KeyedTrial(tag='coin', configuration=<p, seed>)"


@pytest.mark.parametrize("p, expected", [(0.0, False), (1.0, True)])
def test_coin_extremes(p, expected):
    assert toss(p, seed=1) is expected
    assert conduct(KeyedTrial("coin", {"p": p})) is expected
    assert CoinTrial(p).conduct() is expected


def test_seeded_coin_is_reproducible():
    assert [toss(0.5, seed=s) for s in range(20)] == [toss(0.5, seed=s) for s in range(20)]
    assert resulttype(CoinTrial) is bool
    assert resulttype(CoinTrial(0.3)) is bool


def test_gaussian_draw():
    value = conduct(KeyedTrial("gaussian", {"mu": 5.0, "sigma": 0.0}))
    assert isinstance(value, float)
    assert value == pytest.approx(5.0)


def test_keyed_trial_is_hashable_and_configuration_read_only():
    configuration = {"p": 0.2, "history": [1, 2]}
    trial = KeyedTrial("coin", configuration)
    assert hash(trial) == hash(KeyedTrial("coin", {"p": 0.2, "history": [1, 2]}))
    assert trial == KeyedTrial("coin", {"p": 0.2, "history": [1, 2]})
    assert len({trial, KeyedTrial("coin", {"p": 0.2, "history": [1, 2]})}) == 1
    with pytest.raises(TypeError):
        trial.configuration["p"] = 0.9
    # Later edits to the caller's dict do not leak into the trial.
    configuration["p"] = 0.9
    assert trial.configuration["p"] == 0.2


def test_keyed_trial_pickles():
    trial = KeyedTrial("coin", {"p": 0.2, "seed": 4})
    restored = pickle.loads(pickle.dumps(trial))
    assert restored == trial
    assert conduct(restored) == conduct(trial)
