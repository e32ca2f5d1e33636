import math
import unittest
from unittest import mock

import numpy as np

from kdelta.cluster.kmeans import Cluster, assign_points, canberra_distance, choose_centroids, kmeans
from kdelta.cluster.select import calinski_harabasz, select_clusters


def two_blobs(n_points=20, dims=4, separation=10.0, seed=0):
    rand = np.random.RandomState(seed)
    blob_a = separation + rand.uniform(-1, 1, (n_points, dims))
    blob_b = -separation + rand.uniform(-1, 1, (n_points, dims))
    return list(blob_a) + list(blob_b)


class TestCanberraDistance(unittest.TestCase):
    def test_same_vector(self):
        vec = np.array([3.0, -4.0, 0.0, 12.0])
        self.assertEqual(0.0, canberra_distance(vec, vec))

    def test_no_informative_dimension(self):
        self.assertEqual(1.0, canberra_distance(np.zeros(4), np.zeros(4)))
        self.assertEqual(1.0, canberra_distance(np.array([0.5, 0.25]), np.array([0.5, 0.0])))

    def test_ignores_uninformative_dimensions(self):
        self.assertAlmostEqual(1 / 3, canberra_distance(np.array([2.0, 0.5]), np.array([4.0, 0.0])))

    def test_opposite_vectors(self):
        self.assertEqual(1.0, canberra_distance(np.array([5.0, -2.0]), np.array([-5.0, 2.0])))

    def test_symmetric(self):
        a = np.array([1.0, 7.0, -3.0])
        b = np.array([4.0, 0.0, 2.0])
        self.assertEqual(canberra_distance(a, b), canberra_distance(b, a))


class TestChooseCentroids(unittest.TestCase):
    def test_segment_middles(self):
        data = [np.array([float(i)]) for i in range(0, 10)]
        self.assertEqual([2.0, 7.0], [c[0] for c in choose_centroids(data, 2)])

    def test_uneven_segments(self):
        data = [np.array([float(i)]) for i in range(0, 11)]
        self.assertEqual([1.0, 4.0, 7.0], [c[0] for c in choose_centroids(data, 3)])


class TestAssignPoints(unittest.TestCase):
    def test_ties_go_to_first_centroid(self):
        data = np.array([[5.0, 5.0]])
        centroids = [np.array([5.0, 5.0]), np.array([5.0, 5.0])]
        self.assertEqual([0], list(assign_points(data, centroids)))


class TestKmeans(unittest.TestCase):
    def test_partitions_input(self):
        rand = np.random.RandomState(3)
        data = list(rand.uniform(-20, 20, (15, 3)))
        for k in range(2, 15):
            clusters = kmeans(data, k)
            self.assertEqual(k, len(clusters))
            members = sorted([i for cluster in clusters for i in cluster.points_idx])
            self.assertEqual(list(range(0, 15)), members)

    def test_separates_blobs(self):
        data = two_blobs()
        clusters = kmeans(data, 2)
        self.assertEqual([list(range(0, 20)), list(range(20, 40))], [c.points_idx for c in clusters])

    def test_empty_cluster_keeps_centroid(self):
        data = [np.array([10.0, 10.0])] * 4 + [np.array([-10.0, -10.0])] * 4
        clusters = kmeans(data, 3)
        members = sorted([i for cluster in clusters for i in cluster.points_idx])
        self.assertEqual(list(range(0, 8)), members)
        self.assertEqual(1, len([c for c in clusters if not c.points_idx]))

    def test_max_rounds(self):
        data = [np.array([value]) for value in [1.0, 10.0, 11.0, 12.0, 13.0, 14.0]]
        first_round = kmeans(data, 2, max_rounds=1)
        self.assertEqual([[0, 1, 2], [3, 4, 5]], [c.points_idx for c in first_round])
        second_round = kmeans(data, 2, max_rounds=2)
        self.assertEqual([[0], [1, 2, 3, 4, 5]], [c.points_idx for c in second_round])
        self.assertEqual([1.0], list(second_round[0].centroid))
        self.assertEqual([12.0], list(second_round[1].centroid))

    def test_stops_when_centroids_settle(self):
        data = [np.array([value]) for value in [1.0, 10.0, 11.0, 12.0, 13.0, 14.0]]
        with mock.patch('kdelta.cluster.kmeans.assign_points', wraps=assign_points) as counted:
            clusters = kmeans(data, 2, max_rounds=10)
        # third round reproduces the second round centroids
        self.assertEqual(3, counted.call_count)
        self.assertEqual([[0], [1, 2, 3, 4, 5]], [c.points_idx for c in clusters])

    def test_bad_k(self):
        data = two_blobs(n_points=2)
        with self.assertRaises(ValueError):
            kmeans(data, 1)
        with self.assertRaises(ValueError):
            kmeans(data, 4)


class TestCalinskiHarabasz(unittest.TestCase):
    def test_not_enough_points(self):
        data = [np.array([1.0]), np.array([2.0])]
        clusters = [Cluster(np.array([1.0])), Cluster(np.array([2.0]))]
        clusters[0].points_idx = [0]
        clusters[1].points_idx = [1]
        self.assertTrue(math.isnan(calinski_harabasz(data, clusters)))

    def test_no_within_dispersion(self):
        data = [np.array([1.0]), np.array([1.0]), np.array([3.0])]
        clusters = [Cluster(np.array([1.0])), Cluster(np.array([3.0]))]
        clusters[0].points_idx = [0, 1]
        clusters[1].points_idx = [2]
        # grand centroid 2.0: 2 * 1 + 1 * 1
        self.assertEqual(3.0, calinski_harabasz(data, clusters))

    def test_with_within_dispersion(self):
        data = [np.array([0.0]), np.array([2.0]), np.array([10.0]), np.array([12.0])]
        clusters = [Cluster(np.array([1.0])), Cluster(np.array([11.0]))]
        clusters[0].points_idx = [0, 1]
        clusters[1].points_idx = [2, 3]
        # between 2 * 25 + 2 * 25, within 4 * 1
        self.assertEqual(100.0 / (4.0 / 2), calinski_harabasz(data, clusters))


class TestSelectClusters(unittest.TestCase):
    def test_two_blobs(self):
        selection = select_clusters(two_blobs())
        self.assertEqual(2, selection.n_clusters)
        self.assertTrue(math.isfinite(selection.score))
        self.assertGreater(selection.score, 0)
        self.assertEqual(
            [list(range(0, 20)), list(range(20, 40))], [c.points_idx for c in selection.clusters]
        )

    def test_too_few_points(self):
        data = [np.array([1.0, 2.0]), np.array([3.0, 4.0])]
        self.assertIsNone(select_clusters(data))

    def test_identical_points(self):
        data = [np.array([5.0, 5.0])] * 6
        selection = select_clusters(data)
        self.assertEqual(2, selection.n_clusters)
        self.assertEqual(0.0, selection.score)

    def test_max_clusters(self):
        data = [np.array([float(i * 10), 0.0]) for i in range(0, 30)]
        selection = select_clusters(data, max_clusters=3)
        self.assertLessEqual(selection.n_clusters, 3)
