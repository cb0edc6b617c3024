#!/usr/bin/env python3
"""
Train a Small Network on XOR

XOR is the classic problem a single-layer perceptron cannot solve: the two
classes are not linearly separable, so at least one hidden layer is needed.

Usage:
    python train_xor.py
    python train_xor.py --epochs 10000 --hidden 8 --seed 1 --save xor.json
    python train_xor.py --load xor.json --epochs 0
    python train_xor.py --config configs/xor.json

The script will:
1. Build a network from the config (or load a saved one)
2. Train it on the four XOR examples
3. Print the prediction for every example and the final loss
4. Optionally save the learned parameters

Environment:
    LOG_LEVEL: Logging level for the mlp package (default INFO)
"""

import argparse
import logging
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from mlp.activations import available_activations
from mlp.config import TrainingConfig, load_config
from mlp.errors import NetworkError
from mlp.network import Network

XOR_INPUTS = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
XOR_TARGETS = [[0.0], [1.0], [1.0], [0.0]]


def configure_logging() -> None:
    """Set up logging from the LOG_LEVEL environment variable."""
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train a feedforward network on XOR")
    parser.add_argument("--config", help="JSON file with TrainingConfig fields")
    parser.add_argument("--epochs", type=int, help="Number of training epochs")
    parser.add_argument("--learning-rate", type=float, help="Gradient descent step size")
    parser.add_argument("--hidden", type=int, help="Units in the single hidden layer")
    parser.add_argument(
        "--activation", choices=available_activations(), help="Activation function"
    )
    parser.add_argument("--seed", type=int, help="Seed for weight initialization")
    parser.add_argument("--save", help="Write the trained network to this path")
    parser.add_argument("--load", help="Start from a network saved at this path")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> TrainingConfig:
    """Merge the config file (if any) with command-line overrides."""
    config = load_config(args.config) if args.config else TrainingConfig()
    overrides = config.to_dict()

    if args.epochs is not None:
        overrides["epochs"] = args.epochs
    if args.learning_rate is not None:
        overrides["learning_rate"] = args.learning_rate
    if args.hidden is not None:
        overrides["layers"] = [2, args.hidden, 1]
    if args.activation is not None:
        overrides["activation"] = args.activation
    if args.seed is not None:
        overrides["seed"] = args.seed

    return TrainingConfig.from_dict(overrides)


def main(argv=None) -> int:
    """Main training function."""
    configure_logging()
    args = parse_args(argv)

    print("=" * 60)
    print("XOR Training")
    print("=" * 60)
    print()

    try:
        config = build_config(args)

        if args.load:
            network = Network.load(args.load, activation=config.make_activation())
            print(f"Loaded network from {args.load}")
        else:
            network = config.build_network()
            print("Created new network")

        print(f"  Layers: {network.layers}")
        print(f"  Activation: {config.activation}")
        print(f"  Learning rate: {network.learning_rate}")
        print(f"  Parameters: {network.num_parameters()}")
        print()

        print(f"Training for {config.epochs} epochs...")
        start = time.time()
        history = network.train(
            XOR_INPUTS, XOR_TARGETS, config.epochs, log_every=config.log_every
        )
        elapsed = time.time() - start
        print(f"Done in {elapsed:.1f}s")
        print()

        print("-" * 60)
        for sample, target in zip(XOR_INPUTS, XOR_TARGETS):
            prediction = network.predict(sample)
            print(f"  {sample} -> {prediction[0]:.4f} (target {target[0]:.0f})")
        print("-" * 60)

        if history:
            print(f"Loss after first epoch: {history[0]:.6f}")
        print(f"Final loss: {network.evaluate(XOR_INPUTS, XOR_TARGETS):.6f}")

        if args.save:
            network.save(args.save)
            print(f"Saved network to {args.save}")

    except (NetworkError, ValueError, OSError) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
