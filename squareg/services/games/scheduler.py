import time


def start_transition_driver(app, gateway):
    """Start the background loop that fires timed room transitions.

    - No-ops in TESTING mode (tests drive ``gateway.tick`` with their own clock)
    - Ticks every TICK_INTERVAL_SEC inside the gateway's serialized stream
    - Logs a heartbeat every TIMER_HEARTBEAT_SEC when enabled
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return None

    socketio = gateway.socketio
    interval = float(app.config.get('TICK_INTERVAL_SEC', 0.1))
    heartbeat = float(app.config.get('TIMER_HEARTBEAT_SEC', 0))
    app.logger.info(f"[timer-start] interval={interval}s heartbeat={heartbeat}s")

    def _worker():
        last_beat = time.time()
        while not gateway.stopped:
            socketio.sleep(interval)
            try:
                gateway.tick()
            except Exception:
                app.logger.exception("[timer-error] tick failed")
            if heartbeat > 0 and time.time() - last_beat >= heartbeat:
                last_beat = time.time()
                stats = gateway.stats()
                app.logger.info(f"[timer-heartbeat] rooms={stats['rooms']} players={stats['players']}")

    return socketio.start_background_task(_worker)
