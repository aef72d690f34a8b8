"""
Configuration management for ReadSynth.
"""

import os
import copy
import yaml
import logging
from typing import Dict, Any

from .exceptions import CliError
from .quantity import Quantity

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('Config')


def get_default_config() -> Dict[str, Any]:
    """
    Default configuration, also used as the template.

    Returns:
        Dict: Configuration dictionary
    """
    return {
        "input": {
            "reference": "/path/to/reference.fasta",
            "error_model": "random",
            "qscore_model": "random"
        },
        "output": {
            "directory": "./readsynth_output",
            "fastq": "reads.fastq",
            "truth_table": "ground_truth.csv",
            "overwrite": True
        },
        "simulation": {
            "quantity": "50x",
            "length": {"mean": 15000, "stdev": 13000},
            "identity": {"mean": 85, "max": 95, "stdev": 5},
            "error_k": 7,
            "junk_rate": 0.01,
            "random_rate": 0.01,
            "chimera_rate": 0.01,
            "glitches": {"interval": 10000, "size": 25, "skip": 25}
        },
        "adapters": {
            "start_seq": "AATGTACTTCGTTCAGTTACGTATTGCT",
            "end_seq": "GCAATACGTAACTGAACGAAGT",
            "start_rate": 90,
            "start_amount": 60,
            "end_rate": 50,
            "end_amount": 20,
            "identity": None
        },
        "references": {
            "small_reference_adjustment": False,
            "length_floor": 10000,
            "max_buffered_bases": None
        },
        "performance": {
            "threads": 1,
            "seed": 42,
            "batch_size": None,
            "progress": True
        }
    }


def _merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively fill missing keys of config from defaults"""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(value, merged[key])
        else:
            merged[key] = value
    return merged


def load_config(config_file: str) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    Missing optional entries are filled with their default value.

    Args:
        config_file: Path to configuration YAML file

    Returns:
        Dict: Configuration dictionary
    """
    logger.info(f"Loading configuration from {config_file}")

    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise CliError(f"Configuration must be a mapping, got {type(config).__name__}")

        # Validate essential configuration elements
        _validate_config(config)

        return _merge_defaults(config, get_default_config())
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML configuration: {str(e)}")
        raise
    except Exception as e:
        logger.error(f"Error loading configuration: {str(e)}")
        raise


def _validate_config(config: Dict[str, Any]):
    """
    Validate configuration for required fields and value ranges.

    Args:
        config: Configuration dictionary

    Raises:
        CliError: If required fields are missing or a value is invalid
    """
    # Check required sections
    required_sections = ['input', 'output', 'simulation']
    for section in required_sections:
        if section not in config or not isinstance(config[section], dict):
            raise CliError(f"Missing required configuration section: {section}")

    # Check required input fields
    if not config['input'].get('reference'):
        raise CliError("Missing required input field: reference")

    simulation = config['simulation']
    if 'quantity' in simulation:
        Quantity.parse(simulation['quantity'])

    for rate in ('junk_rate', 'random_rate', 'chimera_rate'):
        value = simulation.get(rate, 0.0)
        if not isinstance(value, (int, float)) or not 0.0 <= value < 1.0:
            raise CliError(f"Invalid {rate}: {value}. Must be in [0, 1)")

    threads = config.get('performance', {}).get('threads', 1)
    if not isinstance(threads, int) or threads < 0:
        raise CliError(f"Invalid thread count: {threads}")

    logger.info("Configuration validation successful")


def save_config(config: Dict[str, Any], output_file: str):
    """
    Save configuration to a YAML file.

    Args:
        config: Configuration dictionary
        output_file: Path to output YAML file
    """
    logger.info(f"Saving configuration to {output_file}")

    try:
        with open(output_file, 'w') as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {output_file}")
    except Exception as e:
        logger.error(f"Error saving configuration: {str(e)}")
        raise


def create_template_config(output_file: str):
    """
    Create a template configuration file.

    Args:
        output_file: Path to output template file
    """
    save_config(get_default_config(), output_file)
    logger.info(f"Template configuration created at {output_file}")
