import json
import unittest

import app as app_mod  # noqa: E402
from app import app as flask_app  # noqa: E402
from game import EngineConfig, ManualScheduler, MatchEngine, MemoryStore  # noqa: E402


def first_of_range(lo, hi):
    return lo


class TestFlaskAPI(unittest.TestCase):
    def setUp(self):
        # Swap the module-level engine for one with an in-memory store and a manual clock
        self._orig_engine = app_mod.ENGINE
        self.store = MemoryStore()
        self.scheduler = ManualScheduler()
        app_mod.ENGINE = self._mk_engine()
        self.client = flask_app.test_client()

    def tearDown(self):
        app_mod.ENGINE = self._orig_engine

    def _mk_engine(self):
        return MatchEngine(
            config=EngineConfig(rows=2, columns=3),
            store=self.store,
            scheduler=self.scheduler,
            rand_int=first_of_range,
        )

    def _post(self, path, payload=None):
        return self.client.post(path, data=json.dumps(payload or {}), content_type="application/json")

    def test_given_new_game_request_when_posted_then_hidden_board_and_board_built_event(self):
        r = self._post("/api/new", {"rows": 2, "columns": 2})
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertTrue(data["ok"])
        state = data["state"]
        self.assertEqual((state["rows"], state["columns"]), (2, 2))
        self.assertEqual(len(state["cards"]), 4)
        # Face-down ids are not leaked to the client
        self.assertTrue(all(c["id"] is None and not c["faceUp"] for c in state["cards"]))
        self.assertEqual(data["events"], [{"type": "BoardBuilt", "rows": 2, "columns": 2}])

    def test_given_bad_dimensions_when_new_then_400(self):
        r = self._post("/api/new", {"rows": 0, "columns": 2})
        self.assertEqual(r.status_code, 400)
        self.assertFalse(r.get_json()["ok"])
        r = self._post("/api/new", {"rows": "abc"})
        self.assertEqual(r.status_code, 400)

    def test_given_seed_when_new_twice_then_same_layout(self):
        def layout():
            self._post("/api/new", {"rows": 3, "columns": 4, "seed": 99})
            return list(app_mod.ENGINE.board.ids())

        self.assertEqual(layout(), layout())

    def test_given_matching_pair_when_revealed_then_score_and_resolution_events(self):
        self._post("/api/new")
        r1 = self._post("/api/reveal", {"index": 0})
        self.assertEqual(r1.get_json()["events"], [{"type": "CardRevealed", "index": 0}])
        self.assertEqual(r1.get_json()["state"]["cards"][0]["id"], 0)
        r2 = self._post("/api/reveal", {"index": 1})
        data = r2.get_json()
        self.assertEqual(data["state"]["score"], 10)
        self.assertIn({"type": "PairResolved", "matched": True, "indices": [0, 1]}, data["events"])
        self.assertTrue(data["state"]["cards"][1]["matched"])

    def test_given_mismatch_when_clock_advances_then_state_unlocks(self):
        self._post("/api/new")
        self._post("/api/reveal", {"index": 1})
        data = self._post("/api/reveal", {"index": 2}).get_json()
        self.assertEqual(data["state"]["locked"], [1, 2])
        self.scheduler.advance(1.0)
        state = self.client.get("/api/state").get_json()["state"]
        self.assertEqual(state["locked"], [])
        self.assertFalse(state["cards"][1]["faceUp"])

    def test_given_bad_reveal_requests_when_posted_then_client_errors(self):
        r = self._post("/api/reveal", {"index": 0})
        self.assertEqual(r.status_code, 409)  # no board yet
        self._post("/api/new")
        self.assertEqual(self._post("/api/reveal", {"index": 99}).status_code, 400)
        self.assertEqual(self._post("/api/reveal", {}).status_code, 400)

    def test_given_malformed_record_when_restore_then_400_and_fresh_board(self):
        self._post("/api/new")
        self._post("/api/reveal", {"index": 0})
        self._post("/api/reveal", {"index": 1})
        record = {"rows": 2, "columns": 2, "score": 0, "cardIds": [0, 0, 1, 1], "matchedFlags": [False]}
        r = self._post("/api/restore", {"record": record})
        self.assertEqual(r.status_code, 400)
        data = r.get_json()
        self.assertFalse(data["ok"])
        self.assertIn("bad record", data["error"])
        self.assertEqual(data["state"]["score"], 0)
        self.assertEqual(len(data["state"]["cards"]), 6)

    def test_given_valid_record_when_restore_then_board_replaced(self):
        record = {"rows": 1, "columns": 4, "score": 10, "cardIds": [1, 0, 0, 1],
                  "matchedFlags": [True, False, False, True]}
        r = self._post("/api/restore", {"record": record})
        self.assertEqual(r.status_code, 200)
        state = r.get_json()["state"]
        self.assertEqual(state["score"], 10)
        self.assertEqual([c["matched"] for c in state["cards"]], [True, False, False, True])
        saved = self.client.get("/api/save").get_json()["record"]
        self.assertEqual(saved, record)

    def test_given_saved_game_when_start_on_new_engine_then_resumed(self):
        r = self._post("/api/start")
        self.assertFalse(r.get_json()["resumed"])
        self._post("/api/reveal", {"index": 0})
        self._post("/api/reveal", {"index": 1})

        app_mod.ENGINE = self._mk_engine()  # same store, as after a restart
        data = self._post("/api/start").get_json()
        self.assertTrue(data["resumed"])
        self.assertEqual(data["state"]["score"], 10)

    def test_given_non_object_json_body_when_posted_then_400(self):
        for path in ("/api/new", "/api/reveal", "/api/restore"):
            for body in ([1], "text", 7):
                r = self._post(path, body)
                self.assertEqual(r.status_code, 400, msg=(path, body))
                self.assertFalse(r.get_json()["ok"])

    def test_given_rejected_seeded_new_when_new_without_seed_then_original_random_source(self):
        r = self._post("/api/new", {"rows": 0, "columns": 2, "seed": 5})
        self.assertEqual(r.status_code, 400)
        self._post("/api/new")
        self.assertEqual(list(app_mod.ENGINE.board.ids()), [0, 0, 1, 1, 2, 2])

    def test_given_no_board_when_get_state_then_game_started(self):
        state = self.client.get("/api/state").get_json()["state"]
        self.assertEqual(len(state["cards"]), 6)
        self.assertEqual(self.client.get("/api/save").status_code, 200)


if __name__ == '__main__':
    unittest.main(verbosity=2)
