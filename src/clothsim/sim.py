import logging
import sys

import moderngl
import numpy as np
import pygame

from clothsim.config import ClothConfig
from clothsim.logging_config import setup_logging
from clothsim.mesh.grid import top_corners, top_edge
from clothsim.renderer import Renderer
from clothsim.solver_numpy import ClothGrid, create_cloth

logger = logging.getLogger(__name__)

GRID_SIZE = 30
PARTICLE_MASS = 0.01
PHYSICS_FPS = 120
SUB_STEPS = 10
WIND_STRENGTH = 4.0
ANCHOR_SPEED = 1.0  # m/s


def build_cloth(corners_only: bool) -> ClothGrid:
    config = ClothConfig(spring_constant=40.0, damping_constant=0.05)
    fixed = top_corners(GRID_SIZE) if corners_only else top_edge()
    return create_cloth(GRID_SIZE, PARTICLE_MASS, fixed=fixed, config=config)


def main() -> None:
    setup_logging(logging.INFO)

    corners_only = False
    cloth = build_cloth(corners_only)

    width, height = 1000, 800
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_mode((width, height), pygame.OPENGL | pygame.DOUBLEBUF)
    pygame.display.set_caption("Cloth Simulation")
    ctx = moderngl.create_context()

    renderer = Renderer(ctx, cloth.export_geometry(), width, height, cloth.config.ground_height)

    running = True
    paused = False
    wind_on = False
    camera_rot = [-0.4, 0.6]
    camera_distance = 6.0
    extent = (GRID_SIZE - 1) * 0.1
    target = (extent / 2, 3.0, extent / 2)

    dt = 1.0 / PHYSICS_FPS
    wind = np.zeros(3)

    print("=" * 60)
    print("Camera:")
    print("  Arrow Keys      - Rotate camera")
    print("  +/-             - Zoom in/out")
    print("\nSimulation:")
    print("  Space           - Pause/Resume physics")
    print("  R               - Reset simulation")
    print("  P               - Toggle pinning (top edge / two corners) and reset")
    print("  W               - Toggle wind")
    print("  I/J/K/L/U/O     - Move anchors")
    print("=" * 60)

    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_SPACE:
                    paused = not paused
                    logger.info("Physics %s", "paused" if paused else "resumed")

                elif event.key == pygame.K_w:
                    wind_on = not wind_on
                    logger.info("Wind %s", "on" if wind_on else "off")

                elif event.key == pygame.K_r:
                    cloth = build_cloth(corners_only)
                    logger.info("Simulation reset")

                elif event.key == pygame.K_p:
                    corners_only = not corners_only
                    cloth = build_cloth(corners_only)
                    logger.info("Pinning: %s", "two corners" if corners_only else "top edge")

        # Continuous Input
        keys = pygame.key.get_pressed()
        if keys[pygame.K_LEFT]:
            camera_rot[1] -= 0.03
        if keys[pygame.K_RIGHT]:
            camera_rot[1] += 0.03
        if keys[pygame.K_UP]:
            camera_rot[0] -= 0.03
        if keys[pygame.K_DOWN]:
            camera_rot[0] += 0.03
        if keys[pygame.K_EQUALS] or keys[pygame.K_PLUS]:
            camera_distance = max(1.0, camera_distance - 0.1)
        if keys[pygame.K_MINUS]:
            camera_distance += 0.1

        anchor = np.zeros(3)
        if keys[pygame.K_j]:
            anchor[0] -= 1.0
        if keys[pygame.K_l]:
            anchor[0] += 1.0
        if keys[pygame.K_i]:
            anchor[2] -= 1.0
        if keys[pygame.K_k]:
            anchor[2] += 1.0
        if keys[pygame.K_u]:
            anchor[1] += 1.0
        if keys[pygame.K_o]:
            anchor[1] -= 1.0

        if not paused:
            t = pygame.time.get_ticks() / 1000.0
            # Gusting wind along +z
            wind[:] = 0.0
            if wind_on:
                wind[2] = WIND_STRENGTH * (1.0 + 0.5 * np.sin(1.7 * t))

            h = dt / SUB_STEPS
            for _ in range(SUB_STEPS):
                if anchor.any():
                    cloth.translate_fixed_particles(anchor * ANCHOR_SPEED * h)
                cloth.step(h, wind)

            if cloth.is_exploded:
                logger.error("Simulation exploded, press R to reset")
                paused = True

        geometry = cloth.export_geometry()
        overlay = [
            f"FPS: {clock.get_fps():.1f}",
            f"t: {cloth.time:.2f}s",
            f"Wind: {wind[2]:.2f} m/s" if wind_on else "Wind: off",
            "Paused" if paused else "",
        ]
        renderer.draw(geometry, camera_rot, camera_distance, target, [line for line in overlay if line])

        clock.tick(PHYSICS_FPS)

    logger.info("Shutting down")
    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
