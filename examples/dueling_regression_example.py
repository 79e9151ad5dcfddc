"""
Dueling Q-Network Example — fitting fixed action values
=======================================================

Trains a ``DuelingDQN`` to reproduce a fixed table of Q-values for a batch
of random states, using the flat parameter block and one vectorised Adam
update per step.
"""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np

# ── project imports ──
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from qnets.core.optimizers import Adam
from qnets.q_networks.dueling_dqn import DuelingDQN
from qnets.utils.config import load_config
from qnets.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def main(config_path: str | None = None, steps: int = 500, batch_size: int = 32) -> None:
    config = load_config(config_path)
    configure_logging(config.logging.level, config.logging.file)

    rng = np.random.default_rng(config.seed)
    net = DuelingDQN.from_config(config)
    optimizer = Adam(step_size=config.optimizer.step_size)

    input_dim = config.network.input_dim
    output_dim = config.network.output_dim
    states = rng.standard_normal((input_dim, batch_size))
    targets = rng.standard_normal((output_dim, batch_size))

    logger.info(f"Training {net!r}")
    for step in range(1, steps + 1):
        net.forward(states)
        gradient = net.backward(states, targets)
        optimizer.update(net.parameters, gradient)

        if step % 100 == 0:
            logger.info(f"step {step:>4d}  loss: {net.evaluate(states, targets):.5f}")

    path = net.save(ROOT / "outputs" / "dueling_dqn.npz")
    logger.info(f"Parameters saved to {path}")


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
