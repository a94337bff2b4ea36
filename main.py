#!/usr/bin/env python
"""
Semantic similarity search benchmark.
Main script to run experiments comparing exact, LSH and proximity-graph indices.
"""
import argparse
import logging
import os
import sys

import yaml

from semsearch.experiments import ExperimentRunner, ExperimentConfig


def setup_logging(verbose: bool):
    """
    Set up logging configuration.

    Args:
        verbose: Whether to enable debug logging
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv=None):
    """
    Main entry point for running experiments.
    """
    # Parse command line arguments
    parser = argparse.ArgumentParser(description="Semantic similarity search experiments")
    parser.add_argument("--config", type=str, default="configs/default.yaml",
                        help="Path to experiment configuration")
    parser.add_argument("--output-dir", type=str, default="results",
                        help="Directory to save results")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable verbose logging")
    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    os.makedirs(args.output_dir, exist_ok=True)

    # Load configuration
    try:
        config = ExperimentConfig.from_yaml(args.config)
        logger.info(f"Loaded configuration from {args.config}")
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Error loading configuration: {str(e)}")
        return 1

    runner = ExperimentRunner(config, output_dir=args.output_dir)

    try:
        runner.register_configured_algorithms()
        logger.info("Starting experiment...")
        runner.run()
    except Exception as e:
        logger.error(f"Error during experiment: {str(e)}", exc_info=True)
        return 1

    logger.info("Experiment completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
