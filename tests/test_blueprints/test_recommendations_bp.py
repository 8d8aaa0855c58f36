"""Integration tests for recommendations blueprint Azure Functions."""
import json
from unittest.mock import Mock, patch

import azure.functions as func

from content_ranking_service.blueprints.recommendations_bp import (
    get_last_watched_similar,
    get_similar_content,
    get_trending_now,
    get_user_recommendations,
    health_check,
)
from content_ranking_service.exceptions import ContentNotFoundError
from content_ranking_service.services import RecommendationProvenance, RecommendationResult

MODULE = 'content_ranking_service.blueprints.recommendations_bp'


def make_request(route_params=None, params=None):
    """Build a mock HttpRequest."""
    mock_req = Mock(spec=func.HttpRequest)
    mock_req.route_params = route_params or {}
    mock_req.params = params or {}
    mock_req.headers = {}
    return mock_req


class TestGetSimilarContent:
    """Tests for get_similar_content function."""

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_recommendation_service')
    def test_returns_similar_content(self, mock_get_service, mock_session_local):
        """Test similar content for a valid item."""
        # Arrange
        mock_service = mock_get_service.return_value
        mock_service.similar_content.return_value = [{'id': 'c-y', 'similarity_score': 9}]
        mock_req = make_request(route_params={'content_id': 'c-x'}, params={'limit': '5'})

        # Act
        response = get_similar_content(mock_req)

        # Assert
        assert response.status_code == 200
        assert response.mimetype == "application/json"
        body = json.loads(response.get_body())
        assert body == {'content_id': 'c-x', 'count': 1, 'results': [{'id': 'c-y', 'similarity_score': 9}]}
        mock_service.similar_content.assert_called_once_with('c-x', limit=5)
        mock_session_local.return_value.close.assert_called_once()

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_recommendation_service')
    def test_unknown_content_returns_404(self, mock_get_service, mock_session_local):
        """Test a missing source item."""
        # Arrange
        mock_get_service.return_value.similar_content.side_effect = ContentNotFoundError('missing')
        mock_req = make_request(route_params={'content_id': 'missing'})

        # Act
        response = get_similar_content(mock_req)

        # Assert
        assert response.status_code == 404
        assert json.loads(response.get_body()) == {'error': 'Content missing not found'}
        mock_session_local.return_value.close.assert_called_once()

    def test_limit_out_of_range_returns_400(self):
        """Test limit above 50."""
        # Arrange
        mock_req = make_request(route_params={'content_id': 'c-x'}, params={'limit': '51'})

        # Act
        response = get_similar_content(mock_req)

        # Assert
        assert response.status_code == 400
        assert 'limit must be between 1 and 50' in json.loads(response.get_body())['error']

    def test_missing_content_id_returns_400(self):
        """Test 400 when content_id is missing."""
        # Arrange
        mock_req = make_request()

        # Act
        response = get_similar_content(mock_req)

        # Assert
        assert response.status_code == 400
        assert 'content_id is required' in json.loads(response.get_body())['error']

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_recommendation_service')
    def test_internal_error_returns_500(self, mock_get_service, mock_session_local):
        """Test unexpected errors become an internal server error."""
        # Arrange
        mock_get_service.return_value.similar_content.side_effect = RuntimeError("database down")
        mock_req = make_request(route_params={'content_id': 'c-x'})

        # Act
        response = get_similar_content(mock_req)

        # Assert
        assert response.status_code == 500
        assert json.loads(response.get_body()) == {"error": "Internal server error"}


class TestGetUserRecommendations:
    """Tests for get_user_recommendations function."""

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_recommendation_service')
    def test_returns_recommendations_with_provenance(self, mock_get_service, mock_session_local):
        """Test the provenance tag is part of the response."""
        # Arrange
        mock_service = mock_get_service.return_value
        mock_service.recommend_for_user.return_value = RecommendationResult(
            provenance=RecommendationProvenance.COLD_START,
            results=[{'id': 'c-w'}, {'id': 'c-y'}]
        )
        mock_req = make_request(route_params={'user_id': 'u-new'})

        # Act
        response = get_user_recommendations(mock_req)

        # Assert
        assert response.status_code == 200
        body = json.loads(response.get_body())
        assert body == {
            'user_id': 'u-new',
            'count': 2,
            'results': [{'id': 'c-w'}, {'id': 'c-y'}],
            'provenance': 'cold-start',
        }
        mock_service.recommend_for_user.assert_called_once_with('u-new', limit=50)

    def test_limit_out_of_range_returns_400(self):
        """Test limit above 100."""
        # Arrange
        mock_req = make_request(route_params={'user_id': 'u1'}, params={'limit': '101'})

        # Act
        response = get_user_recommendations(mock_req)

        # Assert
        assert response.status_code == 400


class TestGetLastWatchedSimilar:
    """Tests for get_last_watched_similar function."""

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_recommendation_service')
    def test_returns_similar_to_last_watched(self, mock_get_service, mock_session_local):
        """Test the last watched title is included."""
        # Arrange
        mock_service = mock_get_service.return_value
        mock_service.last_watched_similar.return_value = {
            'results': [{'id': 'c-x'}],
            'last_watched_title': 'Midnight Stalker',
        }
        mock_req = make_request(route_params={'user_id': 'u1'})

        # Act
        response = get_last_watched_similar(mock_req)

        # Assert
        assert response.status_code == 200
        body = json.loads(response.get_body())
        assert body['last_watched_title'] == 'Midnight Stalker'
        assert body['count'] == 1
        mock_service.last_watched_similar.assert_called_once_with('u1', limit=10)


class TestGetTrendingNow:
    """Tests for get_trending_now function."""

    @patch(f'{MODULE}.SessionLocal')
    @patch(f'{MODULE}.get_trending_service')
    def test_returns_trending_content(self, mock_get_service, mock_session_local):
        """Test trending content for a custom window."""
        # Arrange
        mock_service = mock_get_service.return_value
        mock_service.trending_now.return_value = [{'id': 'c-z', 'trending_score': 74.1}]
        mock_req = make_request(params={'hours': '48'})

        # Act
        response = get_trending_now(mock_req)

        # Assert
        assert response.status_code == 200
        body = json.loads(response.get_body())
        assert body == {'hours': 48, 'count': 1, 'results': [{'id': 'c-z', 'trending_score': 74.1}]}
        mock_service.trending_now.assert_called_once_with(hours=48, limit=20)

    def test_hours_out_of_range_returns_400(self):
        """Test the publication window is bounded."""
        # Arrange
        mock_req = make_request(params={'hours': '0'})

        # Act
        response = get_trending_now(mock_req)

        # Assert
        assert response.status_code == 400


class TestHealthCheck:
    """Tests for health_check function."""

    def test_health_check(self):
        """Test health check endpoint."""
        # Arrange
        mock_req = make_request()

        # Act
        response = health_check(mock_req)

        # Assert
        assert response.status_code == 200
        assert json.loads(response.get_body())['status'] == 'healthy'
