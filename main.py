# main.py
import logging
import random
import pygame
import numpy as np

from constants import NDC_MAX, NDC_MIN, TIME_STEP_NUDGE
from simulation import Simulation

logger = logging.getLogger(__name__)


class Viewer:
    """Window that drives a Simulation once per frame and draws its instances."""

    def __init__(self, simulation: Simulation, width=800, height=800):
        self.sim = simulation
        self.width, self.height = width, height
        self.screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption("Barnes-Hut Gravity")
        self.clock = pygame.time.Clock()
        pygame.font.init()
        self.font = pygame.font.SysFont("Segoe UI", 20)
        self.paused = False
        self.show_quadtree = False

    def ndc_to_screen(self, position):
        """NDC to pixels; y grows downwards on screen."""
        x = (position[0] - NDC_MIN) / (NDC_MAX - NDC_MIN) * self.width
        y = (NDC_MAX - position[1]) / (NDC_MAX - NDC_MIN) * self.height
        return int(x), int(y)

    def screen_to_world(self, pos):
        bounds = self.sim.bounds
        x = bounds.min_x + pos[0] / self.width * (bounds.max_x - bounds.min_x)
        y = bounds.max_y - pos[1] / self.height * (bounds.max_y - bounds.min_y)
        return np.array([x, y])

    def _spawn_particle(self, pos):
        mass = random.uniform(5, 50)
        radius = random.uniform(2, 6)
        self.sim.add_particle(self.screen_to_world(pos), mass, radius)

    def _seed_cloud(self, num_particles=200):
        bounds = self.sim.bounds
        for _ in range(num_particles):
            position = [random.uniform(bounds.min_x, bounds.max_x), random.uniform(bounds.min_y, bounds.max_y)]
            velocity = [random.uniform(-5, 5), random.uniform(-5, 5)]
            self.sim.add_particle(position, random.uniform(1, 10), random.uniform(1, 3), velocity)
        logger.info("Seeded %d particles, %d left after merging", num_particles, len(self.sim))

    def _draw_quadtree(self):
        bounds = self.sim.bounds
        scale_x = self.width / (bounds.max_x - bounds.min_x)
        scale_y = self.height / (bounds.max_y - bounds.min_y)
        for node in self.sim.build_tree().iter_nodes():
            bb = node.bounding_box
            rect = pygame.Rect((bb.min_x - bounds.min_x) * scale_x, (bounds.max_y - bb.max_y) * scale_y,
                               bb.length * scale_x, bb.length * scale_y)
            pygame.draw.rect(self.screen, (50, 50, 50), rect, 1)

    def _draw_particles(self):
        half_width = self.width / (NDC_MAX - NDC_MIN)
        for instance in self.sim.get_instances():
            radius = max(int(instance.radius * half_width), 1)
            pygame.draw.circle(self.screen, (255, 220, 120), self.ndc_to_screen(instance.position), radius)

    def _draw_ui(self):
        self.screen.blit(self.font.render(f"Particles: {len(self.sim)}", True, (255, 255, 255)), (10, 10))
        self.screen.blit(self.font.render(f"Time step (↑↓): {self.sim.time_step:.2f}", True, (255, 255, 255)), (10, 35))
        if self.paused:
            p_text = self.font.render("PAUSED", True, (255, 200, 0))
            self.screen.blit(p_text, p_text.get_rect(center=(self.width / 2, 25)))

    def run(self):
        running = True
        while running:
            self.clock.tick(60)
            for event in pygame.event.get():
                if event.type == pygame.QUIT: running = False
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE: running = False
                    if event.key == pygame.K_SPACE: self.paused = not self.paused
                    if event.key == pygame.K_c: self.sim.reset()
                    if event.key in (pygame.K_UP, pygame.K_EQUALS, pygame.K_PLUS): self.sim.change_time_step(TIME_STEP_NUDGE)
                    if event.key in (pygame.K_DOWN, pygame.K_MINUS): self.sim.change_time_step(-TIME_STEP_NUDGE)
                    if event.key == pygame.K_q: self.show_quadtree = not self.show_quadtree
                    if event.key == pygame.K_g: self._seed_cloud()
                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self._spawn_particle(event.pos)
            if not self.paused:
                self.sim.advance()
            self.screen.fill((0, 0, 10))
            if self.show_quadtree: self._draw_quadtree()
            self._draw_particles()
            self._draw_ui()
            pygame.display.flip()


def main():
    """Main function to run the simulation."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    pygame.init()

    viewer = Viewer(Simulation())
    viewer.run()

    pygame.quit()

if __name__ == "__main__":
    main()
