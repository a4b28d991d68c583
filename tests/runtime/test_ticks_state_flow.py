import logging
import unittest

from pomodoro import CountdownTimer, PreparationTimer, SessionController, SessionSetup
from runtime import RuntimeUIPublisher, TickDependencies, TickProcessor


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingUIServer:
    def __init__(self):
        self.events: list[tuple[str, dict]] = []
        self.states: list[tuple[str, dict]] = []

    def publish(self, event_type: str, **payload) -> None:
        self.events.append((event_type, payload))

    def publish_state(self, state: str, *, message=None, **payload) -> None:
        self.states.append((state, {"message": message, **payload}))

    def of_type(self, event_type: str) -> list[dict]:
        return [payload for kind, payload in self.events if kind == event_type]


class TickProcessorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.ui_server = RecordingUIServer()
        self.controller = SessionController(CountdownTimer(clock=self.clock))
        self.preparation = PreparationTimer(clock=self.clock)
        self.processor = TickProcessor(
            TickDependencies(
                logger=logging.getLogger("test.runtime"),
                ui=RuntimeUIPublisher(self.ui_server),
            )
        )

    def _start_focus(self) -> None:
        self.controller.start_focus(SessionSetup(task_id="1", task_name="Write"))

    def test_regular_tick_publishes_timer_update_only(self) -> None:
        self._start_focus()
        tick = self.controller.poll()
        self.processor.handle_flow_tick(tick)

        timer_events = self.ui_server.of_type("timer")
        self.assertEqual(1, len(timer_events))
        self.assertEqual("tick", timer_events[0]["action"])
        self.assertEqual("focus", timer_events[0]["phase"])
        self.assertEqual(25 * 60, timer_events[0]["timer"]["remaining_seconds"])
        self.assertEqual([], self.ui_server.of_type("notification"))
        self.assertEqual([], self.ui_server.states)

    def test_focus_completion_notifies_and_publishes_state(self) -> None:
        self._start_focus()
        self.clock.now += 25 * 60
        self.processor.handle_flow_tick(self.controller.poll())

        timer_events = self.ui_server.of_type("timer")
        self.assertEqual("completed", timer_events[-1]["action"])
        self.assertTrue(timer_events[-1]["awaiting_outcome"])
        notifications = self.ui_server.of_type("notification")
        self.assertEqual(["Session Complete!"], [n["title"] for n in notifications])
        self.assertEqual("focus", self.ui_server.states[-1][0])

    def test_break_completion_notifies(self) -> None:
        self.controller.start_break(1)
        self.clock.now += 60
        self.processor.handle_flow_tick(self.controller.poll())

        notifications = self.ui_server.of_type("notification")
        self.assertEqual(["Break Complete!"], [n["title"] for n in notifications])
        self.assertEqual("setup", self.ui_server.states[-1][0])

    def test_break_start_result_notifies_with_minutes(self) -> None:
        self._start_focus()
        self.clock.now += 120
        self.processor.handle_flow_result(self.controller.finish_early())

        notifications = self.ui_server.of_type("notification")
        self.assertEqual(1, len(notifications))
        self.assertEqual("Break Time!", notifications[0]["title"])
        self.assertIn("5-minute", notifications[0]["body"])

    def test_rejected_result_publishes_no_state(self) -> None:
        self.processor.handle_flow_result(self.controller.pause())

        timer_events = self.ui_server.of_type("timer")
        self.assertFalse(timer_events[-1]["accepted"])
        self.assertEqual("not_active", timer_events[-1]["reason"])
        self.assertEqual([], self.ui_server.states)

    def test_preparation_completion_notifies(self) -> None:
        self.preparation.start()
        self.clock.now += 600
        self.processor.handle_preparation_tick(self.preparation.poll())

        preparation_events = self.ui_server.of_type("preparation")
        self.assertEqual("completed", preparation_events[-1]["action"])
        self.assertEqual(0, preparation_events[-1]["remaining_seconds"])
        notifications = self.ui_server.of_type("notification")
        self.assertEqual(["Preparation Time Complete!"], [n["title"] for n in notifications])

    def test_publish_current_seeds_all_sticky_events(self) -> None:
        self.processor.publish_current(self.controller.snapshot(), self.preparation.snapshot())

        self.assertEqual("sync", self.ui_server.of_type("timer")[0]["action"])
        self.assertEqual("sync", self.ui_server.of_type("preparation")[0]["action"])
        self.assertEqual("planning", self.ui_server.states[0][0])

    def test_publisher_without_server_is_noop(self) -> None:
        publisher = RuntimeUIPublisher(None)
        publisher.publish("timer", remaining_seconds=1)
        publisher.publish_state("setup", message="Ready")

    def test_report_error_publishes_error_event(self) -> None:
        with self.assertLogs("test.runtime", level="ERROR"):
            self.processor.report_error("Could not save timer state", OSError("disk full"))

        errors = self.ui_server.of_type("error")
        self.assertEqual("error", errors[0]["state"])
        self.assertEqual("Could not save timer state", errors[0]["message"])


if __name__ == "__main__":
    unittest.main()
