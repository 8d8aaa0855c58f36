"""Unit tests for content_ranking_service.ranking.user_similarity."""
import pytest

from content_ranking_service.ranking.user_similarity import (
    SimilarUser,
    UserSimilarityComputer,
)


class TestJaccardProperties:
    """Tests for the Jaccard similarity produced by compute_similarities."""

    def test_half_overlap(self):
        """Test {A,B,C} against {B,C,D}."""
        # Act
        result = UserSimilarityComputer().compute_similarities(['A', 'B', 'C'], {'u2': ['B', 'C', 'D']})

        # Assert
        assert result == {'u2': 0.5}

    def test_symmetry(self):
        """Test J(A, B) == J(B, A)."""
        # Arrange
        computer = UserSimilarityComputer()
        a = ['c-1', 'c-2', 'c-3']
        b = ['c-3', 'c-4']

        # Act
        forward = computer.compute_similarities(a, {'b': b})['b']
        backward = computer.compute_similarities(b, {'a': a})['a']

        # Assert
        assert forward == backward == 0.25

    def test_identity_and_disjoint(self):
        """Test identical histories give 1.0 and disjoint ones give 0."""
        # Act
        result = UserSimilarityComputer().compute_similarities(
            ['c-1', 'c-2'],
            {'same': ['c-2', 'c-1'], 'other': ['c-9']}
        )

        # Assert
        assert result == {'same': 1.0, 'other': 0.0}

    def test_both_empty(self):
        """Test two empty histories give 0."""
        # Act & Assert
        assert UserSimilarityComputer().compute_similarities([], {'u2': []}) == {'u2': 0.0}


class TestComputeSimilarities:
    """Tests for UserSimilarityComputer.compute_similarities."""

    def test_mixed_candidates(self):
        """Test several candidates in one encoded pass."""
        # Arrange
        computer = UserSimilarityComputer()
        requester = ['A', 'B', 'C']
        candidates = {
            'u-half': ['B', 'C', 'D'],
            'u-same': ['C', 'B', 'A'],
            'u-none': ['X', 'Y'],
            'u-dup': ['A', 'A', 'E'],
        }

        # Act
        result = computer.compute_similarities(requester, candidates)

        # Assert
        assert result['u-half'] == 0.5
        assert result['u-same'] == 1.0
        assert result['u-none'] == 0.0
        assert result['u-dup'] == pytest.approx(1 / 4)

    def test_no_candidates(self):
        """Test an empty candidate map."""
        # Act & Assert
        assert UserSimilarityComputer().compute_similarities(['A'], {}) == {}


class TestSelectSimilarUsers:
    """Tests for UserSimilarityComputer.select_similar_users."""

    def test_threshold_is_inclusive(self):
        """Test users at exactly the minimum similarity are kept."""
        # Arrange
        computer = UserSimilarityComputer(min_similarity=0.10)
        requester = [f'c-{i}' for i in range(10)]
        candidates = {
            'u-at': ['c-0'],                # 1/10
            'u-below': ['c-0', 'x-1'],       # 1/11
        }

        # Act
        result = computer.select_similar_users(requester, candidates)

        # Assert
        assert result == [SimilarUser('u-at', 0.1)]

    def test_most_similar_first_and_capped(self):
        """Test ordering and the similar-user cap."""
        # Arrange
        computer = UserSimilarityComputer(min_similarity=0.1, max_users=2)
        requester = ['A', 'B', 'C']
        candidates = {
            'u-third': ['A', 'X', 'Y'],     # 1/5
            'u-first': ['A', 'B', 'C'],     # 1
            'u-second': ['B', 'C', 'D'],    # 1/2
        }

        # Act
        result = computer.select_similar_users(requester, candidates)

        # Assert
        assert [user.user_id for user in result] == ['u-first', 'u-second']
