#!/usr/bin/env python
"""
Command-line interface for ReadSynth.
"""

import os
import argparse
import logging

from .config import create_template_config, load_config
from .exceptions import ReadSynthError
from .evaluation.read_metrics import ReadLevelMetrics
from .readsynth import ReadSynth

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ReadSynth-CLI')


def create_template_command(args):
    """Create a template configuration file"""
    create_template_config(args.output)
    logger.info(f"Created template configuration at {args.output}")
    return 0


def simulate_command(args):
    """Simulate reads with a configuration file"""
    config = load_config(args.config)

    # Override settings if specified in command line
    if args.output_dir:
        config['output']['directory'] = args.output_dir
    if args.quantity:
        config['simulation']['quantity'] = args.quantity
    if args.threads is not None:
        config['performance']['threads'] = args.threads
    if args.seed is not None:
        config['performance']['seed'] = args.seed

    synth = ReadSynth(config=config)
    output_fastq, ground_truth = synth.simulate()

    logger.info(f"Reads written to {output_fastq}, ground truth in {ground_truth}")
    return 0


def validate_command(args):
    """Compute read metrics of a simulated FASTQ, optionally against real data"""
    if not os.path.exists(args.synthetic_fastq):
        logger.error(f"Synthetic FASTQ file not found: {args.synthetic_fastq}")
        return 1

    if args.real_fastq and not os.path.exists(args.real_fastq):
        logger.error(f"Real FASTQ file not found: {args.real_fastq}")
        return 1

    logger.info("Computing read metrics")

    read_metrics = ReadLevelMetrics(
        synthetic_fastq=args.synthetic_fastq,
        output_dir=args.output_dir,
        real_fastq=args.real_fastq
    )
    read_metrics.compare_stats(max_reads=args.max_reads)

    logger.info(f"Validation results saved to {args.output_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='ReadSynth Command Line Interface')
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Show debug messages')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only show warnings and errors')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Template creation command
    template_parser = subparsers.add_parser('create-template', help='Create template configuration file')
    template_parser.add_argument('--output', default='readsynth_config.yaml', help='Output template file path')

    # Simulate command
    simulate_parser = subparsers.add_parser('simulate', help='Simulate reads with configuration')
    simulate_parser.add_argument('--config', required=True, help='Path to configuration YAML file')
    simulate_parser.add_argument('--output-dir', help='Override output directory from config')
    simulate_parser.add_argument('--quantity', help='Override quantity (e.g. 50x, 250M, 1000r)')
    simulate_parser.add_argument('--threads', type=int, help='Override number of worker processes (0 for all cores)')
    simulate_parser.add_argument('--seed', type=int, help='Override random seed')

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Compute read metrics of simulated data')
    validate_parser.add_argument('--synthetic-fastq', required=True, help='Path to simulated FASTQ file')
    validate_parser.add_argument('--real-fastq', help='Path to real FASTQ file to compare with')
    validate_parser.add_argument('--output-dir', default='./validation_results', help='Output directory for validation results')
    validate_parser.add_argument('--max-reads', type=int, default=100000, help='Maximum number of reads per file')

    return parser


def main(argv=None):
    """Main entry point for CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    commands = {
        'create-template': create_template_command,
        'simulate': simulate_command,
        'validate': validate_command,
    }

    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except ReadSynthError as e:
        logger.error(str(e))
        return 2
    except (FileNotFoundError, FileExistsError) as e:
        logger.error(str(e))
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
