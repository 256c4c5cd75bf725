import unittest

import range_utils as ru


class TestSortHelpers(unittest.TestCase):
    def test_sort_ascending_in_place(self) -> None:
        values = [5, 3, 4, 3, 1]
        result = ru.sort_ascending(values)
        self.assertIs(result, values)
        self.assertEqual(values, [1, 3, 3, 4, 5])

    def test_sort_descending_in_place(self) -> None:
        values = [2, 9, 1, 9, 4]
        ru.sort_descending(values)
        self.assertEqual(values, [9, 9, 4, 2, 1])

    def test_sort_small_inputs(self) -> None:
        self.assertEqual(ru.sort_ascending([]), [])
        self.assertEqual(ru.sort_ascending([7]), [7])
        self.assertEqual(ru.sort_descending([1, 2]), [2, 1])


class TestCompressRuns(unittest.TestCase):
    def test_compress_after_sort(self) -> None:
        self.assertEqual(ru.compress_runs(ru.sort_ascending([5, 3, 4, 3, 1])), "1,3-5")

    def test_single_value(self) -> None:
        self.assertEqual(ru.compress_runs([7]), "7")

    def test_duplicates_runs_and_singles(self) -> None:
        self.assertEqual(ru.compress_runs([2, 2, 3, 4, 5, 9, 10, 12]), "2-5,9-10,12")

    def test_no_runs(self) -> None:
        self.assertEqual(ru.compress_runs([1, 3, 5]), "1,3,5")

    def test_duplicates_only(self) -> None:
        self.assertEqual(ru.compress_runs([4, 4, 4]), "4")

    def test_empty(self) -> None:
        self.assertEqual(ru.compress_runs([]), "")


if __name__ == "__main__":
    unittest.main()
