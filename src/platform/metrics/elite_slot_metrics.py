from prometheus_client import Counter, Gauge, Histogram


class EliteSlotMetrics:
    """
    Elite Slot Reservation Core Metrics Collector

    Tracks hold contention, sweeper reclamation and the waitlist cascade.
    """

    def __init__(self):
        # ========== Reservation Metrics ==========
        self.hold_attempts = Counter(
            'elite_slot_hold_attempts_total',
            'Total hold attempts',
            ['tier', 'result'],  # result: ok/slot_unavailable
        )

        self.hold_duration = Histogram(
            'elite_slot_hold_duration_seconds',
            'Hold processing time',
            ['tier'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0],
        )

        self.reservation_transitions = Counter(
            'elite_slot_reservation_transitions_total',
            'Reservation state transitions',
            ['to_status'],
        )

        # ========== Sweeper Metrics ==========
        self.sweeper_expirations = Counter(
            'elite_slot_sweeper_expirations_total',
            'Records expired by the sweeper',
            ['kind'],  # kind: hold/offer/extension
        )

        self.sweeper_step_errors = Counter(
            'elite_slot_sweeper_step_errors_total',
            'Sweeper steps that raised',
            ['step'],
        )

        self.sweeper_tick_duration = Histogram(
            'elite_slot_sweeper_tick_duration_seconds',
            'Duration of one sweeper tick',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
        )

        # ========== Waitlist / Extension Metrics ==========
        self.waitlist_offers = Counter(
            'elite_slot_waitlist_offers_total',
            'Waitlist offers made',
            ['tier'],
        )

        self.extension_decisions = Counter(
            'elite_slot_extension_decisions_total',
            'Extension requests decided',
            ['decision'],  # decision: approved/rejected
        )

        self.slot_event_queue_dropped = Counter(
            'elite_slot_event_queue_dropped_total',
            'Slot freed events dropped because the queue was full',
        )

        self.free_slots = Gauge(
            'elite_slot_free_slots',
            'Free active slots in the active period (last reconcile)',
        )

    # ========== Helper Methods ==========

    def record_hold(self, *, tier: str, result: str, duration: float):
        self.hold_attempts.labels(tier=tier, result=result).inc()
        self.hold_duration.labels(tier=tier).observe(duration)

    def record_transition(self, *, to_status: str):
        self.reservation_transitions.labels(to_status=to_status).inc()

    def record_expiration(self, *, kind: str, count: int = 1):
        if count:
            self.sweeper_expirations.labels(kind=kind).inc(count)

    def record_step_error(self, *, step: str):
        self.sweeper_step_errors.labels(step=step).inc()

    def record_offer(self, *, tier: str):
        self.waitlist_offers.labels(tier=tier).inc()

    def record_extension_decision(self, *, approved: bool):
        self.extension_decisions.labels(decision='approved' if approved else 'rejected').inc()


# Global metrics instance
metrics = EliteSlotMetrics()
