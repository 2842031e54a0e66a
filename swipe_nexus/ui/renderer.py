"""
Renderer - draws game snapshots with pygame.
This is a THIN ADAPTER - it only reads state.
"""
from typing import Dict, Optional, Tuple

import pygame

from swipe_nexus.gameplay.game import GameSnapshot
from swipe_nexus.gameplay.obstacles import ObstacleKind

# Layout
HUD_HEIGHT = 56
PADDING = 8

# Colors
BG_COLOR = (12, 8, 28)
GRID_LINE_COLOR = (40, 30, 80)
HUD_TEXT_COLOR = (220, 220, 255)
PLAYER_COLOR = (0, 255, 255)
SHIELD_COLOR = (255, 255, 255)
OVERLAY_COLOR = (0, 0, 0, 170)

OBSTACLE_COLORS: Dict[ObstacleKind, Tuple[int, int, int]] = {
    ObstacleKind.BARRIER: (255, 0, 85),
    ObstacleKind.ENERGY: (255, 215, 0),
    ObstacleKind.SPEED_BOOST: (0, 255, 157),
    ObstacleKind.SHIELD: (138, 43, 226),
}


class Renderer:
    """Draws the grid, obstacles, player and HUD for one snapshot."""

    def __init__(self, width: int, height: int, cell_size: int = 64, debug: bool = False):
        self.width = width
        self.height = height
        self.cell_size = cell_size
        self.debug = debug
        self._font: Optional[pygame.font.Font] = None
        self._big_font: Optional[pygame.font.Font] = None

    @property
    def size(self) -> Tuple[int, int]:
        """Window size in pixels."""
        return (self.width * self.cell_size, self.height * self.cell_size + HUD_HEIGHT)

    def init_fonts(self) -> None:
        pygame.font.init()
        self._font = pygame.font.SysFont(None, 26)
        self._big_font = pygame.font.SysFont(None, 44)

    def render(self, surface: pygame.Surface, snapshot: GameSnapshot, level_name: str = "") -> None:
        if self._font is None:
            self.init_fonts()

        surface.fill(BG_COLOR)
        self._draw_grid(surface)
        for obstacle in snapshot.obstacles:
            self._draw_obstacle(surface, obstacle.kind, obstacle.position.x, obstacle.position.y)
        self._draw_player(surface, snapshot)
        self._draw_hud(surface, snapshot, level_name)

        if snapshot.is_paused:
            self._draw_overlay(surface, "PAUSED", "Space to resume")
        elif snapshot.is_game_over:
            self._draw_overlay(
                surface, "GAME OVER",
                f"Score {snapshot.score}  |  High {snapshot.high_score}  -  Enter to retry"
            )
        elif not snapshot.is_active:
            self._draw_overlay(surface, "SWIPE NEXUS", "Enter or tap to start")

    def cell_rect(self, x: int, y: int) -> pygame.Rect:
        return pygame.Rect(
            x * self.cell_size, HUD_HEIGHT + y * self.cell_size,
            self.cell_size, self.cell_size,
        )

    def _draw_grid(self, surface: pygame.Surface) -> None:
        for y in range(self.height):
            for x in range(self.width):
                pygame.draw.rect(surface, GRID_LINE_COLOR, self.cell_rect(x, y), 1)

    def _draw_obstacle(self, surface: pygame.Surface, kind: ObstacleKind, x: int, y: int) -> None:
        rect = self.cell_rect(x, y).inflate(-PADDING * 2, -PADDING * 2)
        color = OBSTACLE_COLORS[kind]
        if kind == ObstacleKind.BARRIER:
            pygame.draw.rect(surface, color, rect, border_radius=6)
        else:
            pygame.draw.circle(surface, color, rect.center, rect.width // 3)

    def _draw_player(self, surface: pygame.Surface, snapshot: GameSnapshot) -> None:
        position = snapshot.player.position
        rect = self.cell_rect(position.x, position.y).inflate(-PADDING * 2, -PADDING * 2)
        pygame.draw.ellipse(surface, PLAYER_COLOR, rect)
        if snapshot.player.has_shield:
            pygame.draw.ellipse(surface, SHIELD_COLOR, rect.inflate(PADDING, PADDING), 3)

    def _draw_hud(self, surface: pygame.Surface, snapshot: GameSnapshot, level_name: str) -> None:
        target = f"/{snapshot.target_score}" if snapshot.target_score else ""
        left = self._font.render(f"SCORE {snapshot.score}{target}", True, HUD_TEXT_COLOR)
        right = self._font.render(f"HIGH {snapshot.high_score}", True, HUD_TEXT_COLOR)
        surface.blit(left, (PADDING, PADDING))
        surface.blit(right, (surface.get_width() - right.get_width() - PADDING, PADDING))

        detail = level_name
        if self.debug:
            detail = f"{level_name} tick {snapshot.tick_number} @ {snapshot.tick_interval_ms}ms"
        if detail:
            text = self._font.render(detail, True, GRID_LINE_COLOR if not self.debug else HUD_TEXT_COLOR)
            surface.blit(text, (PADDING, PADDING + 24))

    def _draw_overlay(self, surface: pygame.Surface, title: str, subtitle: str) -> None:
        overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        overlay.fill(OVERLAY_COLOR)
        surface.blit(overlay, (0, 0))

        center_x = surface.get_width() // 2
        center_y = surface.get_height() // 2
        heading = self._big_font.render(title, True, PLAYER_COLOR)
        surface.blit(heading, heading.get_rect(center=(center_x, center_y - 20)))
        sub = self._font.render(subtitle, True, HUD_TEXT_COLOR)
        surface.blit(sub, sub.get_rect(center=(center_x, center_y + 20)))
