from typing import List
import numpy as np
from pymanopt.manifolds import SpecialOrthogonalGroup

from .posterior import DistanceObservation
from .procrustes import RigidTransform
from .utils import squared_distance_matrix


class PointSetGenerator:
    '''
    Generator for distance matrix experiments.
    
    This class draws a random point set and produces its squared distance 
    matrix, observation masks, noisy and corrupted versions of the matrix, 
    and random rigid motions of the points.
    '''
    def __init__(self, n, dim, seed=0, sigma_location=0.0, sigma_distance=0.0, scale=1.0):
        """Initialize generator with the number of points and their dimension.
        
        Args:
            n (int): Number of points
            dim (int): Dimension of the points
            seed (int): Random seed (default: 0)
            sigma_location (float): Standard deviation of Gaussian noise on the
                                    point coordinates (default: 0.0)
            sigma_distance (float): Standard deviation of Gaussian noise on the
                                    distances (default: 0.0)
            scale (float): Standard deviation of the point coordinates (default: 1.0)
        """
        self.n = n
        self.dim = dim
        self.seed = seed
        self.sigma_location = sigma_location
        self.sigma_distance = sigma_distance
        np.random.seed(seed)

        # dim x n, one point per column
        self.P = scale * np.random.normal(size=(dim, n))
        self.D = squared_distance_matrix(self.P)

    def generate_mask(self, p_missing):
        """Generate a symmetric observation mask.
        
        Every entry is dropped with probability p_missing; a pair stays observed
        if either of its two entries survived. The diagonal is always observed.
        
        Args:
            p_missing (float): Probability of dropping an entry
            
        Returns:
            np.ndarray: Boolean mask, True where the distance is observed
        """
        W = np.random.uniform(size=(self.n, self.n)) > p_missing
        W = W | W.T
        np.fill_diagonal(W, True)
        return W

    @staticmethod
    def pair_mask(n, missing_pairs):
        """Mask with the given (i, j) pairs and their mirrors unobserved."""
        W = np.ones((n, n), dtype=bool)
        for i, j in missing_pairs:
            W[i, j] = W[j, i] = False
        np.fill_diagonal(W, True)
        return W

    def generate_pair_mask(self, fraction):
        """Drop round(fraction * n(n-1)/2) distinct pairs, chosen uniformly.

        Unlike generate_mask, the fraction applies to pairs after mirroring,
        so exactly that share of the off-diagonal entries goes missing.
        """
        rows, cols = np.triu_indices(self.n, k=1)
        k = int(round(fraction * len(rows)))
        drop = np.random.choice(len(rows), size=k, replace=False)
        return self.pair_mask(self.n, zip(rows[drop], cols[drop]))

    def generate_sample(self, p_missing=0.3):
        """Generate the complete and the masked distance matrix.
        
        Returns:
            tuple: (D, W, D0) with D0 = W * D
        """
        W = self.generate_mask(p_missing)
        return self.D, W, np.where(W, self.D, 0.0)

    def noisy_distances(self, sigma=None):
        """Squared distances with symmetric Gaussian noise and a zero diagonal."""
        sigma = self.sigma_distance if sigma is None else sigma
        noise = np.triu(np.random.normal(0, sigma, size=self.D.shape), k=1)
        return self.D + noise + noise.T

    def sparse_outliers(self, fraction=0.05, magnitude=None):
        """Squared distances where a fraction of the pairs carry a large positive error.
        
        Returns:
            tuple: (corrupted D, symmetric boolean mask of corrupted pairs)
        """
        magnitude = np.max(self.D) if magnitude is None else magnitude
        hit = np.triu(np.random.uniform(size=self.D.shape) < fraction, k=1)
        errors = np.where(hit, magnitude * np.random.uniform(0.5, 1.5, size=self.D.shape), 0.0)
        return self.D + errors + errors.T, hit | hit.T

    def noisy_locations(self, sigma=None):
        sigma = self.sigma_location if sigma is None else sigma
        return self.P + np.random.normal(0, sigma, size=self.P.shape)

    def random_rotation(self):
        """Random element of SO(dim)."""
        if self.dim == 1:
            return np.ones((1, 1))
        return SpecialOrthogonalGroup(self.dim).random_point()

    def random_rigid_transform(self, shift=1.0):
        t = shift * np.random.normal(size=(self.dim, 1))
        return RigidTransform(self.random_rotation(), t)

    def distance_observations(self, p=0.5, sigma=None) -> List[DistanceObservation]:
        """Random subset of noisy, non-squared pairwise distances.
        
        Args:
            p (float): Probability of measuring each pair (default: 0.5)
            sigma (float): Noise standard deviation, defaults to sigma_distance
        """
        sigma = self.sigma_distance if sigma is None else sigma
        distances = np.sqrt(self.D)
        observations = []
        for i in range(self.n):
            for j in range(i + 1, self.n):
                if np.random.uniform() >= p:
                    continue
                d = max(distances[i, j] + sigma * np.random.normal(), 0.0)
                observations.append(DistanceObservation(i, j, float(d)))
        return observations

    @property
    def points(self):
        return self.P

    @property
    def distance_matrix(self):
        return self.D
