import json
import unittest

from src.llmbattleship.engine import BattleshipEngine
from src.llmbattleship.models import Boat, Position
from src.llmbattleship.tools import PlayerTools


def make_engine() -> BattleshipEngine:
    return BattleshipEngine.from_boats(
        Boat(position=Position(0, 0), orientation="horizontal"),
        Boat(position=Position(9, 7), orientation="horizontal"),
        seed=0,
    )


class PlayerToolsTests(unittest.TestCase):
    def test_unknown_player_rejected(self):
        with self.assertRaises(ValueError):
            PlayerTools(make_engine(), "spectator")

    def test_status_reports_only_own_boat(self):
        tools = PlayerTools(make_engine(), "player2")
        status = tools.get_my_status()
        self.assertEqual(status["player"], "player2")
        self.assertEqual(status["boatCells"], [{"row": 9, "col": 7}, {"row": 9, "col": 8}, {"row": 9, "col": 9}])
        self.assertFalse(status["isMyTurn"])
        self.assertEqual(status["maxHits"], 3)
        self.assertEqual(status["totalShots"], 0)
        self.assertNotIn({"row": 0, "col": 0}, status["boatCells"])

    def test_fire_records_action_and_results(self):
        engine = make_engine()
        tools = PlayerTools(engine, "player1")
        self.assertFalse(tools.acted)
        res = tools.fire(9, 8)
        self.assertTrue(res["success"])
        self.assertTrue(res["hit"])
        self.assertTrue(tools.acted)
        self.assertEqual(tools.actions[-1]["tool"], "fire")
        self.assertEqual(tools.actions[-1]["args"], {"row": 9, "col": 8})

        status = tools.get_my_status()
        self.assertEqual(status["myHitsOnEnemy"], [{"row": 9, "col": 8}])
        self.assertEqual(status["myMisses"], [])
        self.assertEqual(status["currentTurn"], "player2")

    def test_failed_action_does_not_count(self):
        tools = PlayerTools(make_engine(), "player2")
        res = tools.fire(0, 0)
        self.assertFalse(res["success"])
        self.assertEqual(res["message"], "Not your turn")
        self.assertFalse(tools.acted)
        self.assertEqual(len(tools.actions), 1)

    def test_non_integer_coordinates(self):
        tools = PlayerTools(make_engine(), "player1")
        res = tools.fire("3", 4)
        self.assertFalse(res["success"])
        self.assertFalse(tools.acted)

    def test_move_boat(self):
        engine = make_engine()
        tools = PlayerTools(engine, "player1")
        res = tools.move_boat("down", 1)
        self.assertEqual(res, {"success": True, "message": "Moved down 1 space(s). New position: (1, 0)"})
        self.assertTrue(tools.acted)
        self.assertEqual(engine.get_player_view("player1").my_boat.cells[0], Position(1, 0))

    def test_visualize_ocean(self):
        tools = PlayerTools(make_engine(), "player1")
        out = tools.visualize_ocean()
        self.assertIn(" 0 █ █ █ ~", out["visualization"])
        # the opponent boat row stays water
        self.assertIn(" 9 ~ ~ ~ ~ ~ ~ ~ ~ ~ ~", out["visualization"])

    def test_function_tool_bindings(self):
        tools = PlayerTools(make_engine(), "player1")
        fts = tools.as_function_tools()
        self.assertEqual([t.name for t in fts], ["visualize_ocean", "get_my_status", "fire", "move_boat"])
        by_name = {t.name: t for t in fts}
        self.assertEqual(set(by_name["fire"].params_json_schema["properties"]), {"row", "col"})
        move_props = by_name["move_boat"].params_json_schema["properties"]
        self.assertEqual(set(move_props), {"direction", "spaces"})
        self.assertIn("LOSE", by_name["move_boat"].description)

    def test_status_is_json_serializable(self):
        tools = PlayerTools(make_engine(), "player1")
        tools.fire(5, 5)
        json.dumps(tools.get_my_status())
        json.dumps(tools.actions)


if __name__ == "__main__":
    unittest.main()
