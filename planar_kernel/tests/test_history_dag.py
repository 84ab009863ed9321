"""
Unit tests for the point-location DAG in `history_dag.py`.
"""
import unittest

from ..history_dag import HistoryDAG


class TestHistoryDAG(unittest.TestCase):

    def setUp(self):
        #        root
        #       /    \
        #      a      b
        #       \    /
        #         c        (reached through two parents, like a flip)
        self.dag = HistoryDAG()
        self.dag.add_root_node('root')
        self.dag.add_children('root', 'a', 'b')
        self.dag.add_children('a', 'c')
        self.dag.add_children('b', 'c', 'd')

    def test_membership_and_size(self):
        self.assertEqual(len(self.dag), 5)
        self.assertIn('c', self.dag)
        self.assertNotIn('z', self.dag)
        self.assertEqual(set(self.dag), {'root', 'a', 'b', 'c', 'd'})

    def test_children_deduplicated(self):
        self.dag.add_children('a', 'c')
        self.assertEqual(self.dag.get_children('a'), ('c',))
        self.assertEqual(self.dag.get_children('b'), ('c', 'd'))
        self.assertEqual(self.dag.get_children('unknown'), ())

    def test_leaves(self):
        self.assertEqual(self.dag.get_leaves(), ['c', 'd'])
        self.assertTrue(self.dag.has_children('root'))
        self.assertFalse(self.dag.has_children('d'))

    def test_find_leaf_prunes_rejected_subtrees(self):
        visited = []

        def accept(node):
            visited.append(node)
            return node in ('root', 'b', 'd')

        self.assertEqual(self.dag.find_leaf(accept), 'd')
        self.assertEqual(visited, ['root', 'a', 'b', 'c', 'd'])

    def test_find_leaf_visits_shared_child_once(self):
        visited = []

        def accept(node):
            visited.append(node)
            return True

        self.assertEqual(self.dag.find_leaf(accept), 'c')
        self.assertEqual(visited.count('c'), 1)

    def test_find_leaf_without_match(self):
        self.assertIsNone(self.dag.find_leaf(lambda node: node != 'root'))
        self.assertIsNone(self.dag.find_leaf(lambda node: node in ('root', 'a')), "No accepted leaf below 'a'.")
        self.assertIsNone(HistoryDAG().find_leaf(lambda node: True), "Empty DAG has no root.")


if __name__ == '__main__':
    unittest.main()
