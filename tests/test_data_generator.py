"""
Unit tests for instance loading and generation
"""

import os
import random
import tempfile
import unittest

import numpy as np

from tests.ga_test_utils import SQUARE4, SQUARE4_TEXT
from data_generator import (
    format_tsp,
    generate_random_matrix,
    load_tsp_file,
    parse_tsp,
    write_tsp_file,
)
from tsp_core import FormatError, LoadError, SizeError

SAMPLE_PATH = os.path.join(os.path.dirname(__file__), '..', 'tsp_data', 'square4.tsp')


def _instance(dimension="4", weight_type="EXPLICIT", weight_format="LOWER_DIAG_ROW",
              weights="0\n1 0\n2 4 0\n3 5 6 0"):
    return (
        f"NAME: test\nDIMENSION: {dimension}\n"
        f"EDGE_WEIGHT_TYPE: {weight_type}\nEDGE_WEIGHT_FORMAT: {weight_format}\n"
        f"EDGE_WEIGHT_SECTION\n{weights}\nEOF\n"
    )


class TestParseTsp(unittest.TestCase):
    """Test parsing of EXPLICIT / LOWER_DIAG_ROW text"""

    def test_parses_four_city_instance(self):
        matrix = parse_tsp(SQUARE4_TEXT)
        self.assertEqual(matrix.size, 4)
        np.testing.assert_array_equal(matrix.as_array(), np.array(SQUARE4))

    def test_known_tour_round_trip(self):
        matrix = parse_tsp(SQUARE4_TEXT)
        self.assertEqual(matrix.tour_cost([0, 1, 2, 3]), 14)

    def test_weights_may_wrap_lines(self):
        matrix = parse_tsp(_instance(weights="0 1 0 2\n4 0 3 5 6\n0"))
        np.testing.assert_array_equal(matrix.as_array(), np.array(SQUARE4))

    def test_header_spacing_and_case(self):
        text = (
            "name : test\ndimension : 4\nedge_weight_type : explicit\n"
            "edge_weight_format: lower_diag_row\nedge_weight_section\n"
            "0\n1 0\n2 4 0\n3 5 6 0\neof\n"
        )
        self.assertEqual(parse_tsp(text).cost(2, 3), 6)

    def test_display_data_section_ends_weights(self):
        text = _instance().replace("EOF\n", "DISPLAY_DATA_SECTION\n1 1.0 2.0\nEOF\n")
        self.assertEqual(parse_tsp(text).size, 4)

    def test_unsupported_weight_type(self):
        with self.assertRaises(FormatError):
            parse_tsp(_instance(weight_type="EUC_2D"))

    def test_unsupported_weight_format(self):
        with self.assertRaises(FormatError):
            parse_tsp(_instance(weight_format="FULL_MATRIX"))

    def test_non_positive_dimension(self):
        with self.assertRaises(SizeError):
            parse_tsp(_instance(dimension="0"))
        with self.assertRaises(SizeError):
            parse_tsp(_instance(dimension="-3"))

    def test_non_integer_dimension(self):
        with self.assertRaises(SizeError):
            parse_tsp(_instance(dimension="four"))

    def test_missing_dimension(self):
        text = _instance().replace("DIMENSION: 4\n", "")
        with self.assertRaises(SizeError):
            parse_tsp(text)

    def test_missing_section(self):
        text = "DIMENSION: 2\nEDGE_WEIGHT_TYPE: EXPLICIT\nEDGE_WEIGHT_FORMAT: LOWER_DIAG_ROW\nEOF\n"
        with self.assertRaises(FormatError):
            parse_tsp(text)

    def test_wrong_weight_count(self):
        with self.assertRaises(FormatError):
            parse_tsp(_instance(weights="0\n1 0\n2 4 0"))

    def test_bad_weight_token(self):
        with self.assertRaises(FormatError):
            parse_tsp(_instance(weights="0\n1 0\n2 x 0\n3 5 6 0"))

    def test_negative_weight(self):
        with self.assertRaises(FormatError):
            parse_tsp(_instance(weights="0\n1 0\n2 -4 0\n3 5 6 0"))

    def test_errors_share_load_error_base(self):
        for text in (_instance(weight_type="GEO"), _instance(dimension="0")):
            with self.assertRaises(LoadError):
                parse_tsp(text)


class TestFiles(unittest.TestCase):
    """Test loading from and writing to disk"""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_load_bundled_instance(self):
        matrix = load_tsp_file(SAMPLE_PATH)
        self.assertEqual(matrix.tour_cost([0, 1, 2, 3]), 14)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_tsp_file(os.path.join(self.tmpdir.name, "nope.tsp"))

    def test_undecodable_bytes_raise_load_error(self):
        path = os.path.join(self.tmpdir.name, "binary.tsp")
        with open(path, "wb") as f:
            f.write(SQUARE4_TEXT.encode("utf-8").replace(b"NAME: square4", b"NAME: \xff\xfe"))
        with self.assertRaises(FormatError):
            load_tsp_file(path)
        with self.assertRaises(LoadError):
            load_tsp_file(path)

    def test_directory_path_raises_load_error(self):
        with self.assertRaises(LoadError):
            load_tsp_file(self.tmpdir.name)

    def test_write_then_load(self):
        matrix = generate_random_matrix(12, max_cost=50, rng=random.Random(3))
        path = os.path.join(self.tmpdir.name, "rand12.tsp")
        write_tsp_file(path, matrix)

        loaded = load_tsp_file(path)
        np.testing.assert_array_equal(loaded.as_array(), matrix.as_array())
        with open(path) as f:
            self.assertIn("NAME: rand12", f.read())

    def test_format_has_lower_diagonal_rows(self):
        lines = format_tsp(SQUARE4, name="sq").splitlines()
        section = lines.index("EDGE_WEIGHT_SECTION")
        self.assertEqual(lines[section + 1:section + 5], ["0", "1 0", "2 4 0", "3 5 6 0"])
        self.assertEqual(lines[-1], "EOF")


class TestGenerateRandomMatrix(unittest.TestCase):

    def test_symmetric_with_zero_diagonal(self):
        matrix = generate_random_matrix(9, max_cost=20, rng=random.Random(11)).as_array()
        np.testing.assert_array_equal(matrix, matrix.T)
        self.assertTrue((np.diag(matrix) == 0).all())
        off_diagonal = matrix[~np.eye(9, dtype=bool)]
        self.assertTrue(((off_diagonal >= 1) & (off_diagonal <= 20)).all())

    def test_seeded_generation_is_repeatable(self):
        a = generate_random_matrix(6, rng=random.Random(5)).as_array()
        b = generate_random_matrix(6, rng=random.Random(5)).as_array()
        np.testing.assert_array_equal(a, b)

    def test_rejects_empty(self):
        with self.assertRaises(SizeError):
            generate_random_matrix(0)


if __name__ == '__main__':
    unittest.main()
