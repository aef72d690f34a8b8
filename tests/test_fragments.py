"""
Unit tests for fragment generation.
"""

import unittest
import os
import sys
import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from readsynth.description import ReadType
from readsynth.exceptions import ModelError
from readsynth.fragments import FragmentGenerator
from readsynth.models import IdentityModel, LengthModel
from readsynth.quantity import BASES, READS, Budget
from readsynth.references import Reference, ReferencePool
from readsynth.seq_utils import random_seq, reverse_complement


class TestFragmentGenerator(unittest.TestCase):
    """Test real, junk, random and chimeric fragments"""

    def setUp(self):
        """Set up test environment"""
        self.rng = np.random.default_rng(3)
        self.identity_model = IdentityModel(100, 100, 0)
        self.pool = ReferencePool([Reference("chrom", random_seq(10000, self.rng))])

    def test_palindromic_reference(self):
        """Test that a fragment is the reference window of its origin"""
        ref = b"ACGTACGTACGT"
        pool = ReferencePool([Reference("palindrome", ref)])
        generator = FragmentGenerator(pool, LengthModel(4, 0), self.identity_model)

        for _ in range(50):
            fragment = generator.generate(self.rng)
            origin = fragment.origins[0]
            self.assertEqual(fragment.length, 4)
            self.assertEqual(fragment.identity, 1.0)
            self.assertEqual(origin.end - origin.start, 4)
            self.assertLessEqual(origin.end, len(ref))

            window = ref[origin.start:origin.end]
            expected = window if origin.strand == '+' else reverse_complement(window)
            self.assertEqual(fragment.raw, expected)

    def test_junk_part(self):
        """Test that junk parts repeat a short motif"""
        for _ in range(20):
            seq, origin = FragmentGenerator.junk_part(30, self.rng)
            self.assertEqual(len(seq), 30)
            self.assertEqual(origin.read_type, ReadType.JUNK)
            self.assertTrue(any(all(seq[i] == seq[i + period] for i in range(30 - period))
                                for period in range(1, 6)))

    def test_random_part(self):
        """Test random parts"""
        seq, origin = FragmentGenerator.random_part(50, self.rng)
        self.assertEqual(len(seq), 50)
        self.assertTrue(set(seq) <= set(b"ACGT"))
        self.assertEqual(str(origin), "random_seq")

    def test_chimeras(self):
        """Test that chimera parts add up to the fragment"""
        generator = FragmentGenerator(self.pool, LengthModel(500, 100), self.identity_model,
                                      chimera_rate=0.5)
        fragments = [generator.generate(self.rng) for _ in range(2000)]

        for fragment in fragments[:200]:
            self.assertEqual(sum(origin.end - origin.start for origin in fragment.origins), fragment.length)

        chimera_fraction = np.mean([fragment.is_chimera for fragment in fragments])
        self.assertAlmostEqual(chimera_fraction, 0.5, delta=0.04)

    def test_random_rate(self):
        """Test the fraction of random fragments"""
        generator = FragmentGenerator(self.pool, LengthModel(100, 0), self.identity_model,
                                      random_rate=0.5)
        types = [generator.generate(self.rng).origins[0].read_type for _ in range(2000)]
        self.assertAlmostEqual(np.mean([t is ReadType.RANDOM for t in types]), 0.5, delta=0.04)
        self.assertNotIn(ReadType.JUNK, types)

    def test_invalid_rates(self):
        """Test that invalid rates are rejected"""
        with self.assertRaises(ModelError):
            FragmentGenerator(self.pool, LengthModel(100, 0), self.identity_model, junk_rate=1.0)
        with self.assertRaises(ModelError):
            FragmentGenerator(self.pool, LengthModel(100, 0), self.identity_model, chimera_rate=-0.1)
        with self.assertRaises(ModelError):
            FragmentGenerator(self.pool, LengthModel(100, 0), self.identity_model,
                              junk_rate=0.6, random_rate=0.6)

    def test_circular_cap(self):
        """Test that fragments of circular references cover at most one turn"""
        pool = ReferencePool([Reference("plasmid", b"ACGTTGCAAC", circular=True)])
        generator = FragmentGenerator(pool, LengthModel(50, 0), self.identity_model)
        self.assertEqual({generator.generate(self.rng).length for _ in range(20)}, {10})

    def test_base_budget(self):
        """Test iteration until a base budget is met"""
        generator = FragmentGenerator(self.pool, LengthModel(300, 50), self.identity_model,
                                      budget=Budget(5000, BASES), rng=self.rng)
        lengths = [fragment.length for fragment in generator]

        self.assertGreaterEqual(sum(lengths), 5000)
        self.assertLess(sum(lengths) - lengths[-1], 5000)

    def test_read_budget(self):
        """Test iteration until a read budget is met"""
        generator = FragmentGenerator(self.pool, LengthModel(300, 50), self.identity_model,
                                      budget=Budget(5, READS), rng=self.rng)
        self.assertEqual(len(list(generator)), 5)
        with self.assertRaises(StopIteration):
            next(generator)

    def test_no_budget(self):
        """Test that a generator without budget yields nothing"""
        generator = FragmentGenerator(self.pool, LengthModel(300, 50), self.identity_model)
        self.assertEqual(list(generator), [])


if __name__ == '__main__':
    unittest.main()
