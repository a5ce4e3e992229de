# main.py
"""
Main entry point for the fireflies simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json` (or the path given on the
   command line).
2. Initializes the logging system.
3. Sets up the window, the fireflies and their neighbor index.
4. Runs the main frame loop.
5. Handles clean shutdown.
"""
import logging
import sys
import cProfile
import pstats
import io

from constants import FULLSCREEN, DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT, FPS
from utils import InvalidConfiguration, setup_logging, load_config

def main(config_path: str = 'config.json'):
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so these two errors are printed.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    try:
        setup_logging(config)
    except InvalidConfiguration as e:
        print(f"FATAL: {e}")
        return

    logging.info("--- Fireflies Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from particle import ParticleStore
    from simulation import Simulation
    from visualization import Visualizer

    draw_edges = vis_params.get('draw_edges', False)
    if draw_edges and not sim_params.get('rebuild_neighbors', True):
        logging.warning("draw_edges is set but rebuild_neighbors is off. Edges will not be drawn.")
        draw_edges = False

    # --- Component Initialization ---
    # 1. The visualizer determines the viewport, which is also the spawn region.
    visualizer = Visualizer(
        fullscreen=vis_params.get('fullscreen', FULLSCREEN),
        width=vis_params.get('window_width', DEFAULT_WINDOW_WIDTH),
        height=vis_params.get('window_height', DEFAULT_WINDOW_HEIGHT),
        fps=vis_params.get('fps', FPS),
        draw_edges=draw_edges,
    )

    # 2. Build the fireflies inside the viewport.
    particles = ParticleStore(sim_params, visualizer.sim_width, visualizer.sim_height)
    sim = Simulation(particles, sim_params, async_rebuild=run_params.get('async_rebuild', False))

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    log_throttle = run_params.get('log_throttle_steps', 100)
    max_steps = run_params.get('max_steps') # None runs until the window closes

    running = True
    if profiler:
        profiler.enable()
    while running:
        dt = visualizer.tick()
        sim.step(dt)

        if not visualizer.draw(particles, sim.neighbor_table if draw_edges else None):
            running = False

        # Hot loops must throttle logs
        if sim.step_count % log_throttle == 0:
            logging.info(f"Frame {sim.step_count}, simulated {sim.elapsed:.1f}s, {visualizer.clock.get_fps():.1f} fps")
            logging.debug(f"Frame {sim.step_count} | Neighbor rebuilds: {sim.index.rebuild_count}")

        if max_steps is not None and sim.step_count >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False
    if profiler:
        profiler.disable()

    sim.close()
    visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Top 20 slowest functions
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Fireflies Simulation Shutting Down ---")


if __name__ == "__main__":
    main(*sys.argv[1:2])
