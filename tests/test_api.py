"""Tests for the Flask JSON API."""

import main


class TestCatalogue:
    """Test the read-only routes."""

    def test_algorithms(self, client):
        """Both traversals are listed with their pseudocode."""
        data = client.get("/api/algorithms").get_json()
        assert [a["key"] for a in data] == ["bfs", "dijkstra"]
        assert data[1]["weighted"] is True
        assert data[0]["pseudocode"][0] == "def BFS(graph, start):"

    def test_presets_filter(self, client):
        """?weighted=true narrows the list."""
        data = client.get("/api/presets?weighted=true").get_json()
        assert [p["key"] for p in data] == ["dijkstra_example1", "dijkstra_example2", "custom"]

    def test_state_creates_session(self, client):
        """The first request creates a session on the default preset."""
        data = client.get("/api/state").get_json()
        assert data["preset"] == "tree"
        assert data["engine"]["status"] == "ready"
        assert len(main.SESSIONS) == 1

    def test_sessions_are_isolated(self, client):
        """Two browsers don't share a run."""
        client.post("/api/step")
        with main.app.test_client() as other:
            data = other.get("/api/state").get_json()
        assert data["engine"]["step_count"] == 0
        assert len(main.SESSIONS) == 2

    def test_registry_is_capped(self, client, monkeypatch):
        """Cookie-less clients can't grow the registry past the cap."""
        monkeypatch.setattr(main.config, "MAX_SESSIONS", 3)
        for _ in range(10):
            with main.app.test_client() as stranger:
                stranger.get("/api/state")
        assert len(main.SESSIONS) == 3

    def test_recent_session_survives_eviction(self, client, monkeypatch):
        """The least recently used session is the one dropped."""
        monkeypatch.setattr(main.config, "MAX_SESSIONS", 2)
        client.post("/api/step")
        with main.app.test_client() as other:
            other.get("/api/state")
        client.get("/api/state")
        with main.app.test_client() as third:
            third.get("/api/state")
        assert len(main.SESSIONS) == 2
        assert client.get("/api/state").get_json()["engine"]["step_count"] == 1


class TestRun:
    """Test stepping and autoplay routes."""

    def test_step(self, client):
        """POST /api/step advances one step."""
        data = client.post("/api/step").get_json()
        assert data["performed"] is True
        assert data["state"]["engine"]["narration"] == "Dequeued A. Enqueued [B, C]. Queue: [B, C]"

    def test_dijkstra_distances_are_json(self, client):
        """∞ is sent as null with a text form alongside."""
        client.post("/api/graph/preset", json={"preset": "dijkstra_example1", "algorithm": "dijkstra"})
        engine = client.post("/api/step").get_json()["state"]["engine"]
        assert engine["distance"]["E"] is None
        assert engine["distance_text"]["E"] == "∞"
        assert engine["distance"]["C"] == 1

    def test_step_during_autoplay_conflicts(self, client):
        """Manual step while playing is a 409."""
        client.post("/api/autoplay/start", json={"speed": "fast"})
        resp = client.post("/api/step")
        assert resp.status_code == 409
        assert "error" in resp.get_json()
        data = client.post("/api/autoplay/pause").get_json()
        assert data["paused"] is True
        assert data["state"]["autoplay"]["state"] == "stopped"

    def test_bad_interval_is_400(self, client):
        """A non-numeric cadence is a client error."""
        resp = client.post("/api/autoplay/start", json={"interval_ms": "fast"})
        assert resp.status_code == 400
        assert client.get("/api/state").get_json()["autoplay"]["state"] == "stopped"

    def test_unknown_speed_is_409(self, client):
        """Speed names must be known presets."""
        resp = client.post("/api/autoplay/start", json={"speed": "warp"})
        assert resp.status_code == 409

    def test_start_and_reset(self, client):
        """The start node can be moved and the run reset."""
        data = client.post("/api/start", json={"node": "C"}).get_json()
        assert data["state"]["engine"]["start"] == "C"
        client.post("/api/step")
        data = client.post("/api/reset").get_json()
        assert data["state"]["engine"]["step_count"] == 0

    def test_history(self, client):
        """History lists the steps taken."""
        client.post("/api/step")
        client.post("/api/step")
        data = client.get("/api/history").get_json()
        assert data["visit_order"] == ["A", "B"]
        assert data["metrics"]["total_steps"] == 2


class TestGraphRoutes:
    """Test graph loading and editing routes."""

    def test_invalid_graph_is_400(self, client):
        """Malformed graphs are a 400 and leave the session alone."""
        resp = client.post("/api/graph/select", json={"graph": {"nodes": ["A", "A"]}})
        assert resp.status_code == 400
        assert "Duplicate node" in resp.get_json()["error"]
        assert client.get("/api/state").get_json()["preset"] == "tree"

    def test_missing_field_is_400(self, client):
        """Required fields are checked."""
        assert client.post("/api/graph/preset", json={}).status_code == 400

    def test_unknown_preset_is_409(self, client):
        """Unknown keys are contract violations."""
        assert client.post("/api/graph/preset", json={"preset": "nope"}).status_code == 409

    def test_select_graph(self, client):
        """A posted spec becomes the graph."""
        spec = {"directed": False, "nodes": ["X", "Y"], "edges": [{"source": "X", "target": "Y", "weight": 5}]}
        data = client.post("/api/graph/select", json={"graph": spec, "algorithm": "dijkstra"}).get_json()
        assert data["state"]["algorithm"]["key"] == "dijkstra"
        assert data["state"]["engine"]["start"] == "X"

    def test_import(self, client):
        """Adjacency-list text is accepted."""
        data = client.post("/api/graph/import", json={"text": "P: Q R"}).get_json()
        assert [n["id"] for n in data["state"]["graph"]["nodes"]] == ["P", "Q", "R"]

    def test_edit_routes(self, client):
        """Nodes and edges can be added and removed."""
        client.post("/api/edit/node", json={"id": "G"})
        client.post("/api/edit/edge", json={"source": "F", "target": "G", "weight": 1})
        data = client.post("/api/edit/remove", json={"id": "B"}).get_json()
        ids = [n["id"] for n in data["state"]["graph"]["nodes"]]
        assert ids == ["A", "C", "D", "E", "F", "G"]
        assert "F-G" in [e["id"] for e in data["state"]["graph"]["edges"]]

    def test_algorithm_switch(self, client):
        """The traversal can change on the current graph."""
        data = client.post("/api/algorithm", json={"algorithm": "dijkstra"}).get_json()
        assert data["state"]["algorithm"]["key"] == "dijkstra"
        assert data["state"]["preset"] == "tree"

    def test_integer_node_id_is_400(self, client):
        """Node ids sent as JSON numbers are refused."""
        client.post("/api/graph/preset", json={"preset": "dijkstra_example1", "algorithm": "dijkstra"})
        resp = client.post("/api/edit/node", json={"id": 5})
        assert resp.status_code == 400
        data = client.post("/api/step").get_json()
        assert data["performed"] is True

    def test_string_flag_is_400(self, client):
        """The string "false" is not a boolean."""
        resp = client.post("/api/graph/import", json={"text": "P: Q", "directed": "false"})
        assert resp.status_code == 400
        resp = client.post("/api/practice/toggle", json={"on": "yes"})
        assert resp.status_code == 400


class TestPracticeRoutes:
    """Test the quiz over HTTP."""

    def test_round_trip_quiz(self, client):
        """Select, expand, apply."""
        data = client.post("/api/practice/toggle", json={"on": True}).get_json()
        assert data["state"]["practice"]["phase"] == "selecting"

        feedback = client.post("/api/practice/select", json={"node": "A"}).get_json()["feedback"]
        assert feedback["correct"] is True

        client.post("/api/practice/expand/toggle", json={"node": "B"})
        data = client.post("/api/practice/expand/toggle", json={"node": "C"}).get_json()
        assert data["guess"] == ["B", "C"]

        feedback = client.post("/api/practice/expand/submit").get_json()["feedback"]
        assert feedback["correct"] is True

        data = client.post("/api/practice/apply").get_json()
        assert data["performed"] is True
        assert data["state"]["engine"]["visited"] == ["A"]

    def test_step_blocked_in_practice(self, client):
        """Plain Step is a 409 while practising."""
        client.post("/api/practice/toggle", json={"on": True})
        assert client.post("/api/step").status_code == 409
        assert client.post("/api/autoplay/start").status_code == 409

    def test_apply_without_answer_is_409(self, client):
        """The step must be earned."""
        client.post("/api/practice/toggle", json={"on": True})
        assert client.post("/api/practice/apply").status_code == 409

    def test_unknown_node_is_409(self, client):
        """Guesses must name a real node."""
        client.post("/api/practice/toggle", json={"on": True})
        assert client.post("/api/practice/select", json={"node": "Q"}).status_code == 409

    def test_wrong_guess_is_feedback(self, client):
        """A wrong answer is a 200 with feedback."""
        client.post("/api/practice/toggle", json={"on": True})
        resp = client.post("/api/practice/select", json={"node": "B"})
        assert resp.status_code == 200
        assert resp.get_json()["feedback"]["correct"] is False

    def test_hint_and_auto_apply(self, client):
        """Hint text and the auto-apply flag are exposed."""
        client.post("/api/practice/toggle", json={"on": True})
        data = client.post("/api/practice/hint").get_json()
        assert data["hint"] == "Queue (front → back): [A]"
        assert data["state"]["practice"]["hints_used"] == 1
        data = client.post("/api/practice/auto_apply", json={"on": True}).get_json()
        assert data["state"]["practice"]["auto_apply"] is True
