"""
Integration tests for the REST API.

Tests cover:
- Profile endpoints
- Session submission and reconciled listing
- Report endpoint (with and without profile)
- Validation errors
"""

import json
import pytest # pyright: ignore[reportMissingImports]
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from utils.api_server import create_app


@pytest.fixture
def config(tmp_path):
    return {
        'storage': {
            'local_cache_path': str(tmp_path / "cache" / "sessions.json"),
            'database_path': str(tmp_path / "db" / "screening.db"),
        },
        'reconciliation': {'prefer_source': 'local'},
        'api': {'cors_origins': ['http://localhost:5173']},
    }


@pytest.fixture
def client(config):
    return TestClient(create_app(config))


SYMBOL_SESSION = {
    'date': '2024-05-03T10:00:00Z',
    'game': 'Symbol Spotter',
    'hits': 8,
    'misses': 2,
    'falseAlarms': 1,
    'totalTargets': 10,
    'trials': [{'is_correct': True, 'response_time': rt} for rt in (0.6, 0.7, 0.65)],
}


class TestProfiles:
    """Test profile endpoints."""

    def test_root(self, client):
        """Test API root lists endpoints."""
        response = client.get("/")
        assert response.status_code == 200
        assert "/children" in response.json()['endpoints']

    def test_put_and_get_profile(self, client):
        """Test put and get profile."""
        response = client.put("/children/Maya", json={'age': 4})
        assert response.status_code == 200
        assert response.json()['name'] == 'maya'

        response = client.get("/children/maya")
        assert response.status_code == 200
        assert response.json()['age'] == 4

    def test_missing_profile_404(self, client):
        """Test missing profile 404."""
        assert client.get("/children/nobody").status_code == 404

    def test_invalid_age_422(self, client):
        """Test invalid age 422."""
        assert client.put("/children/maya", json={'age': -1}).status_code == 422

    def test_list_children(self, client):
        """Test list children."""
        client.put("/children/maya", json={'age': 4})
        client.post("/children/maya/sessions", json=SYMBOL_SESSION)

        children = client.get("/children").json()
        assert children == [{
            'child_id': 'maya',
            'age': 4,
            'created_at': children[0]['created_at'],
            'session_count': 1,
        }]


class TestSessions:
    """Test session endpoints."""

    def test_submit_uses_path_child(self, client):
        """Test submit uses path child."""
        response = client.post("/children/Maya/sessions", json=dict(SYMBOL_SESSION, kid='someone-else'))
        assert response.status_code == 201
        assert response.json()['kid'] == 'maya'

    def test_submit_malformed_422(self, client):
        """Test submit malformed 422."""
        response = client.post("/children/maya/sessions", json={'game': 'Symbol Spotter'})
        assert response.status_code == 422

    def test_local_and_remote_merged(self, client, config):
        """Test local and remote merged."""
        # Same session already cached on this host, plus a newer remote one
        cache_path = Path(config['storage']['local_cache_path'])
        cache_path.parent.mkdir(parents=True)
        cache_path.write_text(json.dumps([dict(SYMBOL_SESSION, kid='maya')]))

        client.post("/children/maya/sessions", json=SYMBOL_SESSION)
        client.post("/children/maya/sessions", json={
            'date': '2024-05-04T10:00:00Z', 'game': 'Color Spotter', 'score': 5,
        })

        body = client.get("/children/maya/sessions").json()
        assert [s['game'] for s in body['sessions']] == ['Color Spotter', 'Symbol Spotter']
        assert body['duplicates_dropped'] == 1
        assert body['local_available'] and body['remote_available']


class TestReport:
    """Test the report endpoint."""

    def test_report_with_profile(self, client):
        """Test report with profile."""
        client.put("/children/maya", json={'age': 4})
        client.post("/children/maya/sessions", json=SYMBOL_SESSION)

        report = client.get("/children/maya/report").json()
        assert report['total_plays'] == 1
        assert report['adhd']['z_omission'] == pytest.approx(1.6)
        assert report['game_summaries'][0]['key'] == 'symbol'

    def test_report_without_profile(self, client):
        """Test report without profile."""
        client.post("/children/leo/sessions", json=SYMBOL_SESSION)

        report = client.get("/children/leo/report").json()
        assert report['age'] is None
        assert report['adhd'] is None
        assert report['total_plays'] == 1

    def test_empty_report(self, client):
        """Test empty report."""
        report = client.get("/children/nobody/report").json()
        assert report['total_plays'] == 0
        assert report['average_score_display'] == "—"

    def test_statistics(self, client):
        """Test aggregate statistics."""
        client.post("/children/maya/sessions", json=SYMBOL_SESSION)
        stats = client.get("/statistics").json()
        assert stats['total_sessions'] == 1
        assert stats['sessions_by_game'] == {'Symbol Spotter': 1}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
