# main.py
"""
Main entry point for the water balloon simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json` on top of the built-in defaults.
2. Initializes the logging system.
3. Opens the window and creates the simulation controller.
4. Runs the frame loop: input, tick, draw.
5. Handles clean shutdown.
"""
import logging
import cProfile
import pstats
import io

from constants import DEFAULT_CONFIG
from utils import setup_logging, load_config, merge_config, log_throttle_steps

def main():
    """
    The main function to run the simulation.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = merge_config(DEFAULT_CONFIG, load_config('config.json'))
    except Exception as e:
        print(f"FATAL: Could not load config.json. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Water Balloon Simulation Starting ---")

    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from simulation import SimulationController, FrameInput
    from visualization import Visualizer

    # --- Component Initialization ---
    try:
        controller = SimulationController(sim_params)
    except ValueError as e:
        print(f"FATAL: Invalid simulation parameters. Error: {e}")
        return
    visualizer = Visualizer(vis_params)

    profiler = cProfile.Profile()

    log_throttle = log_throttle_steps(run_params)
    max_steps = run_params.get('max_steps')

    running = True
    step_num = 0

    profiler.enable()
    while running:
        running, fire_event = visualizer.handle_events()
        if not running:
            break

        width, height = visualizer.viewport
        dt = visualizer.frame_time()
        records = controller.tick(dt, FrameInput(width, height, fire_event))
        visualizer.draw(records)
        step_num += 1

        # Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(
                f"Tick {step_num} | state: {controller.state.value} | "
                f"projectiles in flight: {len(controller.projectiles)}"
            )
            if controller.field is not None:
                logging.debug(f"Tick {step_num} | Average Speed: {controller.field.average_speed():.4f}")

        if max_steps is not None and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False
    profiler.disable()

    visualizer.close()
    logging.info("Simulation loop finished.")

    logging.info("--- Performance Profile ---")
    s = io.StringIO()
    # Sort by cumulative time spent in the function
    stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
    stats.print_stats(20)
    logging.info(f"\n{s.getvalue()}")

    logging.info("--- Water Balloon Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
