import unittest

from game import Board, CardState


class TestBoard(unittest.TestCase):
    def test_given_ids_and_flags_when_building_then_matched_cards_face_up(self):
        board = Board.from_ids(2, 2, [1, 0, 0, 1], [True, False, False, True])
        self.assertEqual(board.ids(), [1, 0, 0, 1])
        self.assertEqual(board.matched_flags(), [True, False, False, True])
        self.assertTrue(board[0].face_up)
        self.assertFalse(board[1].face_up)
        self.assertEqual(board[0].state, CardState.MATCHED)
        self.assertEqual(board[1].state, CardState.HIDDEN)

    def test_given_wrong_length_when_building_then_value_error(self):
        with self.assertRaises(ValueError):
            Board.from_ids(2, 2, [0, 0, 1])

    def test_given_board_when_indexing_then_row_major(self):
        board = Board.from_ids(2, 3, [0, 0, 1, 1, 2, 2])
        self.assertEqual(board.index(1, 2), 5)
        self.assertEqual(board.coord(4), (1, 1))
        self.assertEqual(len(board), 6)

    def test_given_mixed_card_states_when_pretty_then_symbols_rendered(self):
        board = Board.from_ids(1, 4, [0, 0, 1, 1], [True, True, False, False])
        board[2].face_up = True
        board[3].face_up = True
        board[3].locked = True
        self.assertEqual(board.pretty(), "[0] [0] 1 1!")
        self.assertEqual(board[2].state, CardState.REVEALED)

    def test_given_partially_matched_board_when_checking_all_matched_then_false(self):
        board = Board.from_ids(1, 2, [0, 0], [True, False])
        self.assertFalse(board.all_matched())
        board[1].matched = True
        self.assertTrue(board.all_matched())

    def test_given_card_when_viewing_then_copy_is_detached(self):
        board = Board.from_ids(1, 2, [0, 0])
        view = board[0].view()
        view.face_up = True
        self.assertFalse(board[0].face_up)


if __name__ == '__main__':
    unittest.main(verbosity=2)
