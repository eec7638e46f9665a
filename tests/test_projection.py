"""
Tests for the isometric projection and tile hit testing.
"""
import pytest

from presence_client.game_state import PlayerView
from presence_client.projection import IsometricProjection, find_player_at


def player(wallet, x, y, location="Town"):
    return PlayerView(wallet=wallet, x=x, y=y, location=location)


class TestIsometricProjection:
    """Tests for IsometricProjection."""

    def test_origin_maps_to_tile_zero(self):
        """The anchor pixel is the top vertex of tile (0, 0)."""
        proj = IsometricProjection(width=800, height=600, tile_size=32)
        assert proj.origin == (400, 150)
        assert proj.to_screen(0, 0) == (400, 150)
        assert proj.to_tile(400, 150) == (0, 0)

    def test_forward_projection(self):
        proj = IsometricProjection(width=800, height=600, tile_size=32)
        # One step in world x moves right and down
        assert proj.to_screen(1, 0) == (416, 158)
        # One step in world y moves left and down
        assert proj.to_screen(0, 1) == (384, 158)

    @pytest.mark.parametrize("width,height,tile_size", [
        (800, 600, 32),
        (1024, 768, 32),
        (640, 480, 64),
    ])
    def test_round_trip_recovers_tile(self, width, height, tile_size):
        """Projecting a tile forward and back lands on the same tile."""
        proj = IsometricProjection(width=width, height=height, tile_size=tile_size)
        for wx in range(-10, 11):
            for wy in range(-10, 11):
                sx, sy = proj.to_screen(wx, wy)
                assert proj.to_tile(sx, sy) == (wx, wy)

    def test_pixels_inside_a_tile_resolve_to_it(self):
        """Points inside the diamond below a tile's top vertex belong to that tile."""
        proj = IsometricProjection(width=800, height=600, tile_size=32)
        for wx, wy in [(0, 0), (3, 3), (3, 5), (-4, 7)]:
            sx, sy = proj.to_screen(wx, wy)
            # Diamond centre is a quarter tile below the top vertex
            assert proj.to_tile(sx, sy + 4) == (wx, wy)
            assert proj.to_tile(sx + 3, sy + 4) == (wx, wy)
            assert proj.to_tile(sx - 3, sy + 4) == (wx, wy)

    def test_negative_offsets_floor_down(self):
        proj = IsometricProjection(width=800, height=600, tile_size=32)
        # Just above the anchor belongs to tile (-1, -1)
        assert proj.to_tile(400, 149) == (-1, -1)


class TestFindPlayerAt:
    """Tests for tile hit testing."""

    def test_exact_tile_matches_only_that_player(self):
        players = [player("first", 3, 3), player("second", 3, 5)]

        hit = find_player_at((3, 3), "Town", players)

        assert hit is players[0]
        assert find_player_at((3, 5), "Town", players) is players[1]

    def test_empty_tile_matches_nothing(self):
        players = [player("first", 3, 3), player("second", 3, 5)]
        assert find_player_at((10, 10), "Town", players) is None

    def test_adjacent_tile_does_not_match(self):
        players = [player("first", 3, 3)]
        assert find_player_at((4, 3), "Town", players) is None
        assert find_player_at((3, 4), "Town", players) is None

    def test_other_location_ignored(self):
        players = [player("first", 3, 3, location="Cave")]
        assert find_player_at((3, 3), "Town", players) is None
        assert find_player_at((3, 3), "Cave", players) is players[0]

    def test_local_player_excluded(self):
        players = [player("me", 3, 3), player("other", 3, 3)]
        hit = find_player_at((3, 3), "Town", players, exclude_identity="me")
        assert hit is players[1]

    def test_first_match_wins(self):
        players = [player("a", 2, 2), player("b", 2, 2)]
        assert find_player_at((2, 2), "Town", players) is players[0]

    def test_click_through_projection(self):
        """A click on a player's tile on screen resolves to that player."""
        proj = IsometricProjection(width=800, height=600, tile_size=32)
        players = [player("first", 3, 3), player("second", 3, 5)]
        sx, sy = proj.to_screen(3, 5)

        assert find_player_at(proj.to_tile(sx, sy + 4), "Town", players) is players[1]
