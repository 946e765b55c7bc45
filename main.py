"""
Main entry point for the thermostat simulator.

This script initializes the world temperature model, the A/C fan and the
fuzzy thermostat controller, then runs the simulation in real time at a
fixed tick rate. Each tick advances the simulation by one step and, every
second, reports the published state (temperature, target, A/C state).
"""

import logging
import os
import signal
import threading
import time

from simulation.central_config import build_simulator
from utils.logger import setup_logging
from utils.profiler import CodeProfiler

# -----------------------------------------------------------------------------
# Cross-platform shutdown handling:
# - SIGINT works on Windows and Linux (Ctrl-C).
# - SIGTERM is installed only on non-Windows (sent by `systemctl stop`).
# - SIGBREAK is tried on Windows consoles but safely ignored elsewhere.
# -----------------------------------------------------------------------------
shutdown = threading.Event()


def _on_signal(_sig, _frm):
    shutdown.set()


def install_signal_handlers():
    signal.signal(signal.SIGINT, _on_signal)  # Ctrl-C everywhere
    try:
        signal.signal(signal.SIGBREAK, _on_signal)  # Windows console Break
    except (AttributeError, OSError):
        pass
    if os.name != "nt":
        signal.signal(signal.SIGTERM, _on_signal)


def config_path():
    """Returns config/sim_config.toml located relative to this script."""
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "config", "sim_config.toml")


def main_control_loop():
    """
    Main loop: step the simulation at a fixed real-time rate until signalled.
    """
    setup_logging()
    main_log = logging.getLogger("main")
    main_log.info("Application starting...")

    sim = build_simulator(config_path())
    main_log.info("Configuration file 'sim_config.toml' loaded.")

    # Real-time tick rate; each tick advances the simulation by dt.
    loop_hz = sim.cfg.loop_hz or 1.0 / sim.cfg.dt
    loop_period = 1.0 / loop_hz
    report_every = max(1, int(round(loop_hz)))

    main_log.info("All components initialized successfully.")
    main_log.info("Starting control loop at %.1f Hz (%.1f ms period)...", loop_hz, loop_period * 1000.0)

    sim.begin()
    try:
        while not shutdown.is_set():
            loop_start_time = time.perf_counter()

            with CodeProfiler("Simulation Step", budget_ms=loop_period * 1000.0):
                sim.step()

            if sim.steps % report_every == 0:
                snap = sim.snapshot()
                main_log.info(
                    "t=%7.2f  temp=%6.2f  target=%6.2f  ac=%s  fan=%+.2f",
                    snap.t, snap.current_temperature, snap.target_temperature,
                    snap.ac_state.value, snap.fan_speed,
                )

            # Maintain the loop period (sleep only the remainder of the tick)
            processing_time = time.perf_counter() - loop_start_time
            sleep_time = loop_period - processing_time
            if sleep_time > 0:
                # Sleep in small chunks so we respond quickly to shutdown
                end = time.perf_counter() + sleep_time
                while not shutdown.is_set() and time.perf_counter() < end:
                    time.sleep(0.002)

    except KeyboardInterrupt:
        main_log.info("Keyboard interrupt received. Shutting down.")
    except Exception as e:
        main_log.critical(
            "An unhandled exception occurred in the main loop: %s", e, exc_info=True
        )
    finally:
        main_log.info("Stopping the fan and shutting down.")
        sim.shutdown()
        main_log.info("Application finished.")


if __name__ == "__main__":
    install_signal_handlers()
    main_control_loop()
