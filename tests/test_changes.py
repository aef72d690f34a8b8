"""
Unit tests for error and glitch injection.
"""

import unittest
import os
import sys
import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from readsynth.alignment import check_trace, count_edits, identity_from_cigar
from readsynth.changes import (Change, ChangeSet, add_errors, add_glitches, error_change,
                               number_of_edits, sequence)
from readsynth.exceptions import ModelError
from readsynth.models import ErrorModel, GlitchModel
from readsynth.seq_utils import random_seq


class TestChange(unittest.TestCase):
    """Test single Changes"""

    def setUp(self):
        """Set up test environment"""
        self.raw = b"AAAACCCCGGGGTTTT"

    def test_from_seq(self):
        """Test that a Change is aligned to the raw window it replaces"""
        change = Change.from_seq(4, 8, b"CCGC", self.raw)
        self.assertEqual(change.cigar, b"==X=")
        self.assertEqual(change.edit, 1)
        self.assertEqual(change.end_err, 8)

    def test_invalid_interval(self):
        """Test that an inverted interval is rejected"""
        with self.assertRaises(ModelError):
            Change(5, 3, b"", b"")
        with self.assertRaises(ModelError):
            Change(-1, 3, b"AAAA", b"I===")
        with self.assertRaises(ValueError):
            Change(5, 3, b"", b"")

    def test_merge_keeps_boundary_insertions(self):
        """Test that insertions at the merge point stay in the merged Change"""
        first = Change(2, 4, b"AAG", b"==I")
        second = Change(4, 6, b"CT", b"=X")

        merged = first.merge(second)
        self.assertEqual((merged.begin, merged.end_raw), (2, 6))
        self.assertEqual(merged.seq, b"AAGCT")
        self.assertEqual(merged.cigar, b"==I=X")
        self.assertEqual(merged.edit, 2)

    def test_error_change_trimmed(self):
        """Test that an error Change only covers the bases it alters"""
        kmer = self.raw[3:8]
        self.assertEqual(kmer, b"ACCCC")

        substitution = error_change(3, kmer, b"ACGCC", self.raw)
        self.assertEqual((substitution.begin, substitution.end_raw), (5, 6))
        self.assertEqual((substitution.seq, substitution.cigar), (b"G", b"X"))

        insertion = error_change(3, kmer, b"ACCCCC", self.raw)
        self.assertEqual((insertion.begin, insertion.end_raw), (8, 8))
        self.assertEqual((insertion.seq, insertion.cigar), (b"C", b"I"))

        deletion = error_change(3, kmer, b"CCCC", self.raw)
        self.assertEqual((deletion.begin, deletion.end_raw), (3, 4))
        self.assertEqual((deletion.seq, deletion.cigar), (b"", b"D"))

        self.assertIsNone(error_change(3, kmer, kmer, self.raw))


class TestChangeSet(unittest.TestCase):
    """Test merging and application of Changes"""

    def setUp(self):
        """Set up test environment"""
        self.raw = b"AAAACCCCGGGGTTTT"
        self.first = Change.from_seq(2, 6, b"ATCC", self.raw)
        self.second = Change.from_seq(4, 9, b"CCGCG", self.raw)

    def test_overlapping_changes_merge(self):
        """Test that overlapping Changes become one"""
        changeset = ChangeSet()
        self.assertEqual(changeset.add(self.first), 1)
        self.assertEqual(changeset.add(self.second), 1)

        self.assertEqual(len(changeset), 1)
        merged = changeset[0]
        self.assertEqual((merged.begin, merged.end_raw), (2, 9))
        self.assertEqual(merged.seq, b"ATCCGCG")
        self.assertEqual(merged.cigar, b"=X==X==")
        self.assertEqual(changeset.edit, 2)

        err, trace = changeset.apply(self.raw)
        self.assertEqual(err, b"AAATCCGCGGGGTTTT")
        self.assertEqual(len(trace), 16)
        self.assertTrue(check_trace(trace, self.raw, err))

    def test_insertion_order(self):
        """Test that adding Changes in reverse order gives the same result"""
        forward = ChangeSet.from_changes([self.first, self.second])
        backward = ChangeSet()
        backward.add(self.second)
        backward.add(self.first)

        self.assertEqual(list(forward), list(backward))
        self.assertEqual(forward.edit, backward.edit)

    def test_contained_change_discarded(self):
        """Test that a Change inside an existing one is dropped"""
        outer = Change.from_seq(2, 10, b"AACTCCGG", self.raw)
        inner = Change.from_seq(3, 5, b"TT", self.raw)

        changeset = ChangeSet()
        changeset.add(outer)
        self.assertEqual(changeset.add(inner), 0)
        self.assertEqual(list(changeset), [outer])

        # the larger Change replaces a contained one added before it
        changeset = ChangeSet()
        changeset.add(inner)
        changeset.add(outer)
        self.assertEqual(list(changeset), [outer])
        self.assertEqual(changeset.edit, outer.edit)

    def test_adjacent_changes_merge(self):
        """Test that touching Changes are merged"""
        changeset = ChangeSet()
        changeset.add(Change.from_seq(2, 4, b"AT", self.raw))
        changeset.add(Change.from_seq(4, 6, b"GC", self.raw))

        self.assertEqual(len(changeset), 1)
        self.assertEqual((changeset[0].begin, changeset[0].end_raw), (2, 6))
        self.assertEqual(changeset[0].seq, b"ATGC")

    def test_partial_overlap_merge(self):
        """Test that a Change overlapping the end of its predecessor extends it"""
        raw = b"TCAGGAAGATCCACA"
        changeset = ChangeSet()
        self.assertEqual(changeset.add(Change.from_seq(0, 5, b"TCTGG", raw)), 1)
        self.assertEqual(changeset.add(Change.from_seq(3, 8, b"GGATG", raw)), 1)

        self.assertEqual(len(changeset), 1)
        merged = changeset[0]
        self.assertEqual((merged.begin, merged.end_raw), (0, 8))
        self.assertEqual(merged.seq, b"TCTGGATG")
        self.assertEqual(merged.cigar, b"==X===X=")
        self.assertEqual(changeset.edit, 2)

        err, trace = changeset.apply(raw)
        self.assertEqual(err, b"TCTGGATG" + b"ATCCACA")
        self.assertTrue(check_trace(trace, raw, err))

    def test_insertion_after_change(self):
        """Test that an insertion on the end of a Change is merged after it"""
        changeset = ChangeSet()
        changeset.add(Change.from_seq(2, 5, b"AGA", self.raw))
        self.assertEqual(changeset.add(Change.from_seq(5, 5, b"TTT", self.raw)), 3)

        self.assertEqual(len(changeset), 1)
        self.assertEqual((changeset[0].begin, changeset[0].end_raw), (2, 5))
        self.assertEqual(changeset[0].seq, b"AGATTT")
        self.assertTrue(changeset[0].cigar.endswith(b"III"))
        self.assertEqual(changeset.edit, 5)

        err, trace = changeset.apply(self.raw)
        self.assertEqual(err, b"AA" + b"AGATTT" + self.raw[5:])
        self.assertTrue(check_trace(trace, self.raw, err))

    def test_insertion_before_change(self):
        """Test that an insertion on the begin of a Change is merged before it"""
        changeset = ChangeSet()
        changeset.add(Change.from_seq(2, 5, b"AGA", self.raw))
        self.assertEqual(changeset.add(Change.from_seq(2, 2, b"GG", self.raw)), 2)

        self.assertEqual(len(changeset), 1)
        self.assertEqual((changeset[0].begin, changeset[0].end_raw), (2, 5))
        self.assertEqual(changeset[0].seq, b"GGAGA")
        self.assertTrue(changeset[0].cigar.startswith(b"II"))
        self.assertEqual(changeset.edit, 4)

        err, trace = changeset.apply(self.raw)
        self.assertEqual(err, b"AA" + b"GGAGA" + self.raw[5:])
        self.assertTrue(check_trace(trace, self.raw, err))

        # an insertion strictly inside a Change is still dropped
        self.assertEqual(changeset.add(Change.from_seq(3, 3, b"C", self.raw)), 0)

    def test_separate_changes_kept(self):
        """Test that Changes separated by a raw base stay apart"""
        changeset = ChangeSet()
        changeset.add(Change.from_seq(5, 7, b"CA", self.raw))
        changeset.add(Change.from_seq(2, 4, b"AT", self.raw))

        self.assertEqual([change.begin for change in changeset], [2, 5])
        self.assertEqual(changeset.edit, 2)

        err, trace = changeset.apply(self.raw)
        self.assertEqual(err, b"AAATCCACGGGGTTTT")
        self.assertEqual(trace, b"===X==X=========")


class TestSequencing(unittest.TestCase):
    """Test error and glitch injection on whole fragments"""

    def setUp(self):
        """Set up test environment"""
        self.rng = np.random.default_rng(5)
        self.error_model = ErrorModel.random(5)
        self.no_glitch = GlitchModel()

    def test_number_of_edits(self):
        """Test the edit target"""
        self.assertAlmostEqual(number_of_edits(0.9, 100), 10.0)
        self.assertEqual(number_of_edits(1.0, 100), 0.0)

    def test_perfect_identity(self):
        """Test that identity 1 leaves the fragment untouched"""
        raw = random_seq(200, self.rng)
        err, trace, changeset = sequence(raw, 1.0, self.error_model, self.no_glitch, self.rng)
        self.assertEqual(err, raw)
        self.assertEqual(trace, b"=" * 200)
        self.assertEqual(len(changeset), 0)

    def test_target_reached(self):
        """Test that errors are added until the edit target"""
        raw = random_seq(500, self.rng)
        changeset = ChangeSet()
        add_errors(raw, number_of_edits(0.9, len(raw)), changeset, self.error_model, self.rng)
        self.assertGreaterEqual(changeset.edit, 50)

    def test_low_identity_targets(self):
        """Test that low identities reach their edit target"""
        error_model = ErrorModel.random(7)
        for identity in (0.5, 0.6, 0.7, 0.8):
            raw = random_seq(1500, self.rng)
            target = number_of_edits(identity, len(raw))
            err, trace, changeset = sequence(raw, identity, error_model, self.no_glitch, self.rng)

            self.assertGreaterEqual(changeset.edit, target)
            self.assertLess(changeset.edit, target + error_model.k)
            self.assertAlmostEqual(identity_from_cigar(trace), identity, delta=0.1)
            self.assertEqual(changeset.edit, count_edits(trace))
            self.assertTrue(check_trace(trace, raw, err))

    def test_glitches(self):
        """Test that glitches add Changes"""
        raw = random_seq(1000, self.rng)
        changeset = ChangeSet()
        add_glitches(raw, changeset, GlitchModel.from_interval(20, 5, 5), self.rng)

        self.assertGreater(len(changeset), 0)
        self.assertNotEqual(changeset.apply(raw)[0], raw)

    def test_changeset_invariants(self):
        """Test ordering, separation and trace consistency on random reads"""
        glitch_model = GlitchModel.from_interval(50, 3, 3)
        for identity in (0.7, 0.85, 0.95):
            raw = random_seq(300, self.rng)
            err, trace, changeset = sequence(raw, identity, self.error_model, glitch_model, self.rng)

            changes = list(changeset)
            for previous, following in zip(changes, changes[1:]):
                self.assertLess(previous.end_raw, following.begin)

            self.assertTrue(check_trace(trace, raw, err))
            self.assertEqual(changeset.edit, count_edits(trace))


if __name__ == '__main__':
    unittest.main()
