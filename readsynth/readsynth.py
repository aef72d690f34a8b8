"""
Main ReadSynth class: builds models from a configuration and writes simulated reads.
"""

import os
import logging
import pandas as pd
from typing import Any, Dict, List, Optional, Tuple

from .config import get_default_config, load_config, save_config, _merge_defaults, _validate_config
from .model_io import load_error_model, load_quality_model
from .models import AdapterModel, GlitchModel, IdentityModel, LengthModel
from .quantity import Quantity
from .references import FastaReferenceLoader, ReferenceLoader
from .simulator import SimulationContext, Simulator

# Set up logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger('ReadSynth')


class ReadSynth:
    """Main class for simulating long reads"""

    def __init__(self, config: Optional[Dict[str, Any]] = None, config_file: Optional[str] = None,
                 reference_loader: Optional[ReferenceLoader] = None):
        """
        Initialize ReadSynth.

        Args:
            config: Configuration dictionary (defaults used when None)
            config_file: Path to configuration YAML file (overrides config)
            reference_loader: Reference source (a FASTA loader built from the
                configuration when None)
        """
        if config_file:
            self.config = load_config(config_file)
            logger.info(f"Configuration loaded from {config_file}")
        elif config is not None:
            self.config = _merge_defaults(config, get_default_config())
        else:
            self.config = get_default_config()

        self.output_dir = self.config['output']['directory']
        self.reference_loader = reference_loader
        self.context = None

    def _save_config(self):
        """Save current configuration to the output directory"""
        config_file = os.path.join(self.output_dir, "readsynth_config.yaml")
        save_config(self.config, config_file)

    def _reference_loader(self) -> ReferenceLoader:
        if self.reference_loader is not None:
            return self.reference_loader

        reference = self.config['input']['reference']
        if not os.path.exists(reference):
            raise FileNotFoundError(f"Reference file not found: {reference}")

        options = self.config['references']
        return FastaReferenceLoader(reference,
                                    small_reference_adjustment=options['small_reference_adjustment'],
                                    length_floor=options['length_floor'],
                                    max_buffered_bases=options['max_buffered_bases'])

    def load_models(self) -> SimulationContext:
        """
        Load references and build every model.

        Returns:
            SimulationContext: Models shared by the simulation tasks
        """
        simulation = self.config['simulation']
        adapters = self.config['adapters']

        logger.info("Start loading references")
        pool = self._reference_loader().load()
        logger.info("End loading references")

        length = simulation['length']
        identity = simulation['identity']
        glitches = simulation['glitches']

        self.context = SimulationContext(
            pool,
            LengthModel(length['mean'], length['stdev']),
            IdentityModel(identity['mean'], identity['max'], identity['stdev']),
            load_error_model(self.config['input']['error_model'], simulation['error_k']),
            load_quality_model(self.config['input']['qscore_model']),
            glitch_model=GlitchModel.from_interval(glitches['interval'], glitches['size'], glitches['skip']),
            adapter_model=AdapterModel(
                start_seq=(adapters['start_seq'] or '').encode('ascii'),
                end_seq=(adapters['end_seq'] or '').encode('ascii'),
                start_rate=adapters['start_rate'],
                start_amount=adapters['start_amount'],
                end_rate=adapters['end_rate'],
                end_amount=adapters['end_amount'],
                identity=adapters['identity']
            ),
            junk_rate=simulation['junk_rate'],
            random_rate=simulation['random_rate'],
            chimera_rate=simulation['chimera_rate']
        )

        return self.context

    def simulate(self, quantity: Optional[str] = None) -> Tuple[str, str]:
        """
        Simulate reads and write them with their ground truth.

        Args:
            quantity: Quantity to simulate (overrides config)

        Returns:
            Tuple[str, str]: Paths to output FASTQ file and ground truth CSV
        """
        if quantity is not None:
            self.config['simulation']['quantity'] = quantity
        _validate_config(self.config)

        quantity = Quantity.parse(self.config['simulation']['quantity'])

        # Models are loaded before any read is written
        if self.context is None:
            self.load_models()

        os.makedirs(self.output_dir, exist_ok=True)
        self._save_config()

        output_fastq = os.path.join(self.output_dir, self.config['output']['fastq'])
        truth_file = os.path.join(self.output_dir, self.config['output']['truth_table'])
        if not self.config['output'].get('overwrite', True) and os.path.exists(output_fastq):
            raise FileExistsError(f"Output FASTQ already exists: {output_fastq}")

        performance = self.config['performance']
        budget = quantity.to_budget(self.context.pool.total_length)
        logger.info(f"Quantity {quantity}: target {budget.target} {budget.unit}")

        simulator = Simulator(self.context, budget,
                              seed=performance['seed'],
                              threads=performance['threads'],
                              batch_size=performance['batch_size'],
                              progress=performance.get('progress', False))

        rows = []
        with open(output_fastq, 'w') as f:
            for read in simulator:
                f.write(read.to_fastq())
                rows.append(read.to_dict())

        self._save_ground_truth(rows, truth_file)

        logger.info(f"Generated {len(rows)} reads: {output_fastq}")
        logger.info(f"Ground truth saved to: {truth_file}")

        return output_fastq, truth_file

    def _save_ground_truth(self, rows: List[Dict[str, Any]], output_file: str):
        """Save ground truth information to CSV"""
        columns = ['read_id', 'read_type', 'origins', 'chimera', 'length', 'error_free_length', 'identity']
        df = pd.DataFrame(rows, columns=columns)
        df.to_csv(output_file, index=False)

        if len(df) > 0:
            logger.info("Read type statistics:")
            for read_type, count in df['read_type'].value_counts().items():
                logger.info(f"  - {read_type}: {count} ({count / len(df) * 100:.1f}%)")
            logger.info(f"  - chimeras: {int(df['chimera'].sum())}")
            logger.info(f"  - mean identity: {df['identity'].mean() * 100:.2f}%")
