"""
Tests for the Dueling Q-Network
===============================

Centered value/advantage merge, gradient routing through the streams,
the single aliased parameter block, construction checks, training and
persistence.
"""

from __future__ import annotations

import numpy as np
import pytest

from qnets.core.activations import ReLU
from qnets.core.layer import NoisyLinear
from qnets.core.losses import EmptyLoss, MeanSquaredError
from qnets.core.optimizers import Adam
from qnets.exceptions import PreconditionError, ShapeMismatchError
from qnets.network.ffn import FFN
from qnets.network.sequential import Sequential
from qnets.q_networks.dueling_dqn import DuelingDQN
from qnets.q_networks.dueling_streams import DuelingStreams
from qnets.utils.config import load_config
from qnets.validation.gradient_check import gradient_check


def _branches(features=6, hidden=3, actions=2):
    value = Sequential(NoisyLinear(features, hidden), ReLU(), NoisyLinear(hidden, 1))
    advantage = Sequential(NoisyLinear(features, hidden), ReLU(), NoisyLinear(hidden, actions))
    return value, advantage


# ────────────────────────────────────────────────────────────────────
# Merge & gradient split
# ────────────────────────────────────────────────────────────────────
class TestCombine:
    def test_known_value(self):
        Q = DuelingStreams.combine(np.array([[2.0]]), np.array([[1.0], [3.0], [5.0]]))
        np.testing.assert_allclose(Q, [[0.0], [2.0], [4.0]])

    def test_mean_is_per_state(self):
        value = np.array([[1.0, -1.0]])
        advantage = np.array([[0.0, 10.0], [2.0, 30.0]])
        Q = DuelingStreams.combine(value, advantage)
        np.testing.assert_allclose(Q, [[0.0, -11.0], [2.0, 9.0]])
        np.testing.assert_allclose(Q.mean(axis=0), value[0])

    def test_constant_shift_in_advantage_cancels(self, rng):
        value = rng.standard_normal((1, 4))
        advantage = rng.standard_normal((3, 4))
        np.testing.assert_allclose(
            DuelingStreams.combine(value, advantage),
            DuelingStreams.combine(value, advantage + 7.0),
        )

    def test_shape_checks(self):
        with pytest.raises(ShapeMismatchError):
            DuelingStreams.combine(np.zeros((2, 3)), np.zeros((4, 3)))
        with pytest.raises(ShapeMismatchError):
            DuelingStreams.combine(np.zeros((1, 3)), np.zeros((4, 2)))


class TestSplitGradient:
    def test_known_value(self):
        dV, dA = DuelingStreams.split_gradient(np.array([[1.0], [2.0], [6.0]]))
        np.testing.assert_allclose(dV, [[9.0]])
        np.testing.assert_allclose(dA, [[-2.0], [-1.0], [3.0]])

    def test_matches_merge_jacobian(self, rng):
        n_actions, batch = 4, 3
        value = rng.standard_normal((1, batch))
        advantage = rng.standard_normal((n_actions, batch))
        dQ = rng.standard_normal((n_actions, batch))

        def loss(flat):
            v = flat[:batch].reshape(1, batch)
            a = flat[batch:].reshape(n_actions, batch)
            return float(np.sum(DuelingStreams.combine(v, a) * dQ))

        dV, dA = DuelingStreams.split_gradient(dQ)
        flat = np.concatenate([value.ravel(), advantage.ravel()])
        analytic = np.concatenate([dV.ravel(), dA.ravel()])
        assert gradient_check(loss, flat, analytic) < 1e-6

    def test_advantage_gradient_is_centered(self, rng):
        _, dA = DuelingStreams.split_gradient(rng.standard_normal((5, 7)))
        np.testing.assert_allclose(dA.sum(axis=0), np.zeros(7), atol=1e-12)


class TestStreamsNode:
    def test_rejects_non_sequential(self):
        value, _ = _branches()
        with pytest.raises(TypeError):
            DuelingStreams(value, NoisyLinear(6, 2))

    def test_block_is_value_then_advantage(self):
        value, advantage = _branches()
        streams = DuelingStreams(value, advantage)
        streams.parameters = np.arange(float(streams.weight_size))
        n_value = value.weight_size
        np.testing.assert_array_equal(value.parameters, np.arange(float(n_value)))
        assert advantage.parameters[0] == n_value
        assert np.shares_memory(advantage.layers[-1].bias, streams.parameters)

    def test_zero_width_input_size(self):
        streams = DuelingStreams(Sequential(NoisyLinear(0, 1)), Sequential(ReLU()))
        assert streams.input_size == 0

    def test_zero_width_branches_validate(self):
        streams = DuelingStreams(Sequential(NoisyLinear(0, 1)), Sequential(NoisyLinear(0, 2)))
        assert streams.validate(0) == 2

    def test_input_size_from_advantage_branch(self):
        streams = DuelingStreams(Sequential(ReLU()), Sequential(NoisyLinear(6, 2)))
        assert streams.input_size == 6

    def test_validate(self):
        streams = DuelingStreams(*_branches(actions=5))
        assert streams.validate(6) == 5
        with pytest.raises(ShapeMismatchError):
            streams.validate(7)
        with pytest.raises(ShapeMismatchError):
            streams.validate(6, 4)


# ────────────────────────────────────────────────────────────────────
# DuelingDQN: construction & parameter block
# ────────────────────────────────────────────────────────────────────
class TestConstruction:
    @pytest.mark.parametrize("dims, expected", [((4, 8, 4, 3), 132), ((4, 8, 4, 2), 127)])
    def test_parameter_count(self, dims, expected):
        dqn = DuelingDQN(*dims)
        assert dqn.parameters.size == expected

    def test_block_layout(self, dueling):
        theta = dueling.parameters
        np.testing.assert_array_equal(theta[:40], dueling.feature_network.layers[0].parameters)
        np.testing.assert_array_equal(theta[40:81], dueling.value_network.parameters)
        np.testing.assert_array_equal(theta[81:], dueling.advantage_network.parameters)

    def test_views_alias_block(self, dueling):
        for net in (dueling.value_network, dueling.advantage_network):
            for layer in net.layers:
                if layer.weight_size:
                    assert np.shares_memory(layer.weight, dueling.parameters)
        dueling.parameters[81] = 42.0
        assert dueling.advantage_network.layers[0].weight[0, 0] == 42.0

    @pytest.mark.parametrize(
        "dims", [(0, 8, 4, 2), (4, -1, 4, 2), (4, 8, 4.0, 2), (4, 8, 4, True), (4, 8, 4, 0)]
    )
    def test_invalid_dimensions(self, dims):
        with pytest.raises(ValueError):
            DuelingDQN(*dims)

    def test_owns_mse_and_feature_network_has_empty_loss(self):
        dqn = DuelingDQN(4, 8, 4, 2)
        assert isinstance(dqn.loss_fn, MeanSquaredError)
        assert isinstance(dqn.feature_network.loss_fn, EmptyLoss)
        assert dqn.feature_network.layers[-1] is dqn.streams

    def test_seeded_construction_is_reproducible(self):
        a = DuelingDQN(4, 8, 4, 2, seed=5)
        b = DuelingDQN(4, 8, 4, 2, seed=5)
        np.testing.assert_array_equal(a.parameters, b.parameters)

    def test_reset_parameters(self, dueling):
        before = dueling.parameters.copy()
        dueling.reset_parameters()
        assert not np.array_equal(dueling.parameters, before)
        assert np.shares_memory(dueling.value_network.layers[-1].weight, dueling.parameters)

    def test_repr(self):
        assert repr(DuelingDQN(4, 8, 4, 2)) == "DuelingDQN(input_dim=4, output_dim=2, parameters=127)"


class TestFromNetworks:
    def test_sequential_feature_network(self, rng):
        features = Sequential(NoisyLinear(4, 6), ReLU())
        value, advantage = _branches()
        dqn = DuelingDQN.from_networks(features, advantage, value)
        assert dqn.output_dim == 2
        assert dqn.parameters.size == 30 + value.weight_size + advantage.weight_size
        assert dqn.forward(rng.standard_normal((4, 5))).shape == (2, 5)

    def test_ffn_loss_is_replaced(self):
        features = FFN(MeanSquaredError())
        features.add(NoisyLinear(4, 6)).add(ReLU())
        value, advantage = _branches()
        dqn = DuelingDQN.from_networks(features, advantage, value, output_dim=2)
        assert isinstance(dqn.feature_network.loss_fn, EmptyLoss)

    def test_value_branch_must_output_one_row(self):
        value = Sequential(NoisyLinear(6, 3), ReLU(), NoisyLinear(3, 2))
        _, advantage = _branches()
        with pytest.raises(ShapeMismatchError):
            DuelingDQN.from_networks(Sequential(NoisyLinear(4, 6)), advantage, value)

    def test_feature_width_mismatch(self):
        value, advantage = _branches(features=5)
        with pytest.raises(ShapeMismatchError):
            DuelingDQN.from_networks(Sequential(NoisyLinear(4, 6)), advantage, value)

    def test_action_count_mismatch(self):
        value, advantage = _branches(actions=2)
        with pytest.raises(ShapeMismatchError):
            DuelingDQN.from_networks(Sequential(NoisyLinear(4, 6)), advantage, value, output_dim=3)


# ────────────────────────────────────────────────────────────────────
# DuelingDQN: passes
# ────────────────────────────────────────────────────────────────────
class TestPasses:
    def test_output_shape_and_value_identity(self, rng):
        dqn = DuelingDQN(4, 8, 4, 2, seed=1)
        states = rng.standard_normal((4, 5))
        Q = dqn.forward(states)
        assert Q.shape == (2, 5)
        assert dqn.features.shape == (8, 5)
        np.testing.assert_allclose(Q.mean(axis=0), dqn.value_network.predict(dqn.features)[0])

    def test_predict_matches_forward(self, dueling, rng):
        states = rng.standard_normal((4, 6))
        np.testing.assert_allclose(dueling.predict(states), dueling.forward(states))

    def test_predict_writes_no_cache(self, dueling, rng):
        dueling.predict(rng.standard_normal((4, 3)))
        assert dueling.network_output is None
        assert dueling.features is None
        with pytest.raises(PreconditionError):
            dueling.backward(np.zeros((4, 3)), np.zeros((3, 3)))

    def test_backward_before_forward(self):
        with pytest.raises(PreconditionError):
            DuelingDQN(4, 8, 4, 2).backward(np.zeros((4, 1)), np.zeros((2, 1)))

    def test_target_shape_mismatch(self, dueling, rng):
        states = rng.standard_normal((4, 3))
        dueling.forward(states)
        with pytest.raises(ShapeMismatchError):
            dueling.backward(states, np.zeros((2, 3)))

    def test_gradient_check(self, dueling, rng):
        from qnets.validation.gradient_check import gradient_check_network

        states = rng.standard_normal((4, 5))
        target = rng.standard_normal((3, 5))
        assert gradient_check_network(dueling, states, target) < 1e-5

    def test_gradient_layout(self, dueling, rng):
        states = rng.standard_normal((4, 5))
        dueling.forward(states)
        grad = dueling.backward(states, rng.standard_normal((3, 5)))
        assert grad.shape == dueling.parameters.shape

    def test_zero_batch(self, dueling):
        states = np.zeros((4, 0))
        assert dueling.forward(states).shape == (3, 0)
        grad = dueling.backward(states, np.zeros((3, 0)))
        np.testing.assert_array_equal(grad, np.zeros(132))

    def test_adam_reduces_loss(self, rng):
        dqn = DuelingDQN(4, 8, 4, 2, seed=0)
        states = rng.standard_normal((4, 32))
        target = np.vstack([states[0] - states[1], states[2] + 0.5])
        adam = Adam(step_size=0.01)

        initial = dqn.evaluate(states, target)
        for _ in range(300):
            dqn.forward(states)
            adam.update(dqn.parameters, dqn.backward(states, target))
        assert dqn.evaluate(states, target) < 0.5 * initial


# ────────────────────────────────────────────────────────────────────
# DuelingDQN: config & persistence
# ────────────────────────────────────────────────────────────────────
class TestConfigAndPersistence:
    def test_from_default_config(self):
        config = load_config()
        dqn = DuelingDQN.from_config(config)
        assert dqn.output_dim == config.network.output_dim
        assert dqn.feature_network.network.input_size == config.network.input_dim

    def test_from_overridden_config(self):
        config = load_config(overrides={"network": {"output_dim": 5}, "seed": 3})
        assert DuelingDQN.from_config(config).output_dim == 5

    def test_save_load_round_trip(self, dueling, tmp_path, rng):
        path = dueling.save(tmp_path / "dqn")
        assert path.suffix == ".npz"

        loaded = DuelingDQN(4, 8, 4, 3, seed=99)
        loaded.load(path)
        states = rng.standard_normal((4, 6))
        np.testing.assert_array_equal(loaded.parameters, dueling.parameters)
        np.testing.assert_allclose(loaded.predict(states), dueling.predict(states))

    def test_load_resizes_architecture(self, dueling, tmp_path, rng):
        path = dueling.save(tmp_path / "dqn.npz")
        loaded = DuelingDQN(2, 2, 2, 2)
        loaded.load(path)
        assert loaded.output_dim == 3
        assert loaded.parameters.size == 132
        states = rng.standard_normal((4, 2))
        np.testing.assert_allclose(loaded.predict(states), dueling.predict(states))

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            DuelingDQN(4, 8, 4, 2).load(tmp_path / "missing.npz")
