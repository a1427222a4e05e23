# visualization.py
"""
Handles the visualization of the water balloon using Pygame.

The Visualizer is the thin shell around the simulation core: it owns the
window and the frame clock, turns Pygame events into fire events, and
draws the records produced by SimulationController.tick.
"""
import logging
from typing import Iterable, Optional, Tuple

import pygame

from constants import (
    BACKGROUND_COLOR, FULLSCREEN, WINDOW_WIDTH, WINDOW_HEIGHT, WINDOW_TITLE, FPS
)
from particle import DrawRecord

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, params: Optional[dict] = None):
#     - Inputs:
#       - params: The "visualization" section of config.json.
#         - "fullscreen": bool
#         - "window_width": int
#         - "window_height": int
#         - "fps": int
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - handle_events(self) -> Tuple[bool, Optional[Tuple[float, float]]]:
#     - Outputs: (running, fire_event). running is False once the user
#       quits; fire_event is the last left-click position this frame.
#
#   - frame_time(self) -> float:
#     - Outputs: Seconds since the previous call, capped by the frame rate.
#
#   - draw(self, records: Iterable[DrawRecord]) -> None:
#     - Side Effects: Renders every record as a filled circle and flips
#       the display.

class Visualizer:
    """
    Renders draw records and collects mouse clicks.
    """
    def __init__(self, params: Optional[dict] = None):
        """
        Initializes Pygame and the display window.
        """
        params = params if params is not None else {}
        pygame.init()

        if params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = params.get('window_width', WINDOW_WIDTH)
            height = params.get('window_height', WINDOW_HEIGHT)
            self.screen = pygame.display.set_mode((width, height))

        # Pygame only blends alpha when blitting, so circles are drawn onto a
        # transparent layer first and then composited over the background.
        self.layer = pygame.Surface((width, height), pygame.SRCALPHA)

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()
        self.fps = params.get('fps', FPS)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def viewport(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def frame_time(self) -> float:
        return self.clock.tick(self.fps) / 1000.0

    def handle_events(self) -> Tuple[bool, Optional[Tuple[float, float]]]:
        """
        Polls Pygame events.

        Returns:
            Tuple[bool, Optional[Tuple[float, float]]]: Whether to keep
            running, and the click position if the user fired this frame.
        """
        fire_event = None
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False, None

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False, None

            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                fire_event = (float(event.pos[0]), float(event.pos[1]))

        return True, fire_event

    def draw(self, records: Iterable[DrawRecord]) -> None:
        self.screen.fill(BACKGROUND_COLOR)
        self.layer.fill((0, 0, 0, 0))

        for record in records:
            pygame.draw.circle(
                self.layer,
                record.rgba,
                (int(record.x), int(record.y)),
                int(record.radius)
            )

        self.screen.blit(self.layer, (0, 0))
        pygame.display.flip()

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
