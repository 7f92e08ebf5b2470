import unittest

import server


class BattleshipApiTests(unittest.TestCase):
    def setUp(self):
        server.MATCHES.clear()
        self.client = server.app.test_client()

    def _create(self, **extra):
        payload = {"player1": {"type": "random"}, "player2": {"type": "random"}, "seed": 5}
        payload.update(extra)
        rsp = self.client.post("/api/battleship/games", json=payload)
        self.assertEqual(rsp.status_code, 200)
        return rsp.get_json()

    def test_create_and_read_state(self):
        body = self._create()
        match_id = body["match_id"]
        self.assertEqual(body["state"]["currentTurn"], "player1")
        self.assertEqual(body["state"]["turnNumber"], 1)

        rsp = self.client.get(f"/api/battleship/games/{match_id}")
        self.assertEqual(rsp.status_code, 200)
        state = rsp.get_json()["state"]
        self.assertEqual(state["player1Hits"], 0)
        self.assertNotIn("players", state)

    def test_turn_advances_and_reports_commentary(self):
        match_id = self._create()["match_id"]
        rsp = self.client.post(f"/api/battleship/games/{match_id}/turn")
        self.assertEqual(rsp.status_code, 200)
        body = rsp.get_json()
        self.assertEqual(body["agent"], "Player 1")
        self.assertEqual(body["state"]["currentTurn"], "player2")
        self.assertEqual(body["actions"][-1]["tool"], "fire")
        self.assertTrue(body["commentary"])

    def test_turns_until_game_over(self):
        match_id = self._create()["match_id"]
        body = None
        for _ in range(200):
            body = self.client.post(f"/api/battleship/games/{match_id}/turn").get_json()
            if body["state"]["isGameOver"]:
                break
        self.assertTrue(body["state"]["isGameOver"])
        after = self.client.post(f"/api/battleship/games/{match_id}/turn").get_json()
        self.assertEqual(after["message"], "Game is already over")
        self.assertEqual(after["commentary"], body["state"]["winReason"])

    def test_visualize_and_history(self):
        match_id = self._create()["match_id"]
        self.client.post(f"/api/battleship/games/{match_id}/turn")
        vis = self.client.get(f"/api/battleship/games/{match_id}/visualize").get_json()
        self.assertEqual(len(vis["player1"]["boat"]["cells"]), 3)
        self.assertEqual(len(vis["player1"]["shots"]), 1)
        self.assertEqual(vis["player2"]["shots"], [])
        hist = self.client.get(f"/api/battleship/games/{match_id}/history").get_json()
        self.assertEqual(len(hist["plies"]), 1)
        self.assertEqual(hist["participants"]["player1"]["label"], "Random")

    def test_reset(self):
        match_id = self._create()["match_id"]
        self.client.post(f"/api/battleship/games/{match_id}/turn")
        body = self.client.post(f"/api/battleship/games/{match_id}/reset").get_json()
        self.assertEqual(body["message"], "Game reset")
        self.assertEqual(body["state"]["currentTurn"], "player1")
        hist = self.client.get(f"/api/battleship/games/{match_id}/history").get_json()
        self.assertEqual(hist["plies"], [])

    def test_list_and_delete(self):
        match_id = self._create()["match_id"]
        listing = self.client.get("/api/battleship/games").get_json()
        self.assertEqual([m["match_id"] for m in listing], [match_id])
        self.assertEqual(listing[0]["status"], "running")
        self.assertEqual(self.client.delete(f"/api/battleship/games/{match_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/battleship/games/{match_id}").status_code, 404)

    def test_unknown_match(self):
        for path in ("", "/visualize", "/history"):
            self.assertEqual(self.client.get(f"/api/battleship/games/nope{path}").status_code, 404)
        self.assertEqual(self.client.post("/api/battleship/games/nope/turn").status_code, 404)
        self.assertEqual(self.client.post("/api/battleship/games/nope/reset").status_code, 404)

    def test_invalid_player_type(self):
        rsp = self.client.post("/api/battleship/games", json={"player1": {"type": "stockfish"}})
        self.assertEqual(rsp.status_code, 400)
        self.assertEqual(rsp.get_json()["error"], "invalid_payload")

    def test_player_entry_must_be_an_object(self):
        rsp = self.client.post(
            "/api/battleship/games",
            json={"player1": "random", "player2": {"type": "random"}},
        )
        self.assertEqual(rsp.status_code, 400)
        self.assertEqual(rsp.get_json()["error"], "invalid_payload")
        self.assertEqual(server.MATCHES, {})

    def test_duplicate_match_id_is_rejected(self):
        first = self._create(match_id="fixed")
        self.client.post("/api/battleship/games/fixed/turn")
        rsp = self.client.post(
            "/api/battleship/games",
            json={"match_id": "fixed", "player1": {"type": "random"}, "player2": {"type": "random"}},
        )
        self.assertEqual(rsp.status_code, 409)
        self.assertEqual(first["match_id"], "fixed")
        # the original session keeps its progress
        state = self.client.get("/api/battleship/games/fixed").get_json()["state"]
        self.assertEqual(state["currentTurn"], "player2")

    def test_cors_headers(self):
        rsp = self.client.get("/api/battleship/games")
        self.assertIn("Access-Control-Allow-Origin", rsp.headers)
        preflight = self.client.options("/api/battleship/games/abc/turn", headers={"Origin": "http://localhost:3000"})
        self.assertIn(preflight.status_code, (200, 204))
        self.assertEqual(preflight.headers["Access-Control-Allow-Origin"], "http://localhost:3000")


if __name__ == "__main__":
    unittest.main()
