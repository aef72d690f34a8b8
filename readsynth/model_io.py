"""
Text parsers for error and quality model files.

Error model lines:   KMER,weight;ALT,weight;ALT,weight;...
Quality model lines: CIGAR;count;score:weight,score:weight,...
"""

import os
import gzip
import logging
from typing import Dict, Iterable, List, Tuple

from .exceptions import ModelError
from .models import ErrorModel, QualityModel

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ModelIO')

# Constants
RANDOM_MODEL = 'random'
IDEAL_MODEL = 'ideal'


def _open_text(path: str):
    # Use gzip if file is compressed
    open_func = gzip.open if path.endswith('.gz') else open
    mode = 'rt' if path.endswith('.gz') else 'r'
    return open_func(path, mode)


def parse_error_table(lines: Iterable[str]) -> Dict[bytes, List[Tuple[bytes, float]]]:
    """
    Parse error model lines into a k-mer table.

    The first pair of each line is the k-mer itself with the weight of
    staying error free.

    Args:
        lines: Error model text lines

    Returns:
        Dict: k-mer -> list of (alternative, weight)
    """
    table = {}
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue

        alternatives = []
        for field in line.split(';'):
            if not field:
                continue
            parts = field.split(',')
            if len(parts) != 2:
                raise ModelError(f"Error model line {line_number}: malformed entry '{field}'")
            try:
                weight = float(parts[1])
            except ValueError:
                raise ModelError(f"Error model line {line_number}: invalid weight '{parts[1]}'")
            alternatives.append((parts[0].encode('ascii'), weight))

        if not alternatives:
            raise ModelError(f"Error model line {line_number}: no k-mer")
        table[alternatives[0][0]] = alternatives

    return table


def parse_quality_table(lines: Iterable[str]) -> Dict[bytes, List[Tuple[int, float]]]:
    """
    Parse quality model lines into a window table.

    Args:
        lines: Quality model text lines; the 'overall' line is ignored

    Returns:
        Dict: trace window -> list of (score, weight)
    """
    table = {}
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue

        fields = line.split(';')
        if fields[0] == 'overall':
            continue
        if len(fields) < 3:
            raise ModelError(f"Quality model line {line_number}: expected 'CIGAR;count;scores'")

        scores = []
        for entry in fields[2].split(','):
            if not entry:
                continue
            parts = entry.split(':')
            if len(parts) != 2:
                raise ModelError(f"Quality model line {line_number}: malformed score '{entry}'")
            try:
                scores.append((int(parts[0]), float(parts[1])))
            except ValueError:
                raise ModelError(f"Quality model line {line_number}: malformed score '{entry}'")

        table[fields[0].encode('ascii')] = scores

    return table


def load_error_model(source: str, k: int = 7) -> ErrorModel:
    """
    Load an error model.

    Args:
        source: Path to an error model file or 'random'
        k: k-mer size of the random model

    Returns:
        ErrorModel: Loaded model
    """
    if source == RANDOM_MODEL:
        logger.info(f"Using random error model (k={k})")
        return ErrorModel.random(k)

    if not os.path.exists(source):
        raise FileNotFoundError(f"Error model file not found: {source}")

    logger.info(f"Loading error model from {source}")
    try:
        with _open_text(source) as f:
            model = ErrorModel(parse_error_table(f))
    except ModelError as e:
        logger.error(f"Error loading error model: {str(e)}")
        raise

    logger.info(f"Loaded error model with {len(model)} {model.k}-mers")
    return model


def load_quality_model(source: str) -> QualityModel:
    """
    Load a quality model.

    Args:
        source: Path to a quality model file, 'random' or 'ideal'

    Returns:
        QualityModel: Loaded model
    """
    if source == RANDOM_MODEL:
        logger.info("Using random quality model")
        return QualityModel.random()
    if source == IDEAL_MODEL:
        logger.info("Using ideal quality model")
        return QualityModel.ideal()

    if not os.path.exists(source):
        raise FileNotFoundError(f"Quality model file not found: {source}")

    logger.info(f"Loading quality model from {source}")
    try:
        with _open_text(source) as f:
            model = QualityModel(parse_quality_table(f))
    except ModelError as e:
        logger.error(f"Error loading quality model: {str(e)}")
        raise

    logger.info(f"Loaded quality model, max window {model.max_k}")
    return model
