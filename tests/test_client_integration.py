import threading
import unittest

from bulb_emulator.app import BulbTCPServer
from bulb_emulator.config import EmulatorConfig
from yeelight_client import CommandRejected, ConnectionClosed, Light, Session, TransportFailure
from yeelight_client.values import (
    Brightness,
    ColorTemperature,
    Delay,
    FlowExpression,
    Hsv,
    Percentage,
    Prop,
    Rgb,
    TransitionDuration,
)


class EmulatorTestCase(unittest.TestCase):
    config = EmulatorConfig(host="127.0.0.1", port=0, name="desk")

    def setUp(self):
        self.server = BulbTCPServer(self.config)
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.host, self.port = self.server.server_address
        self.sessions = []

    def tearDown(self):
        for session in self.sessions:
            session.close()
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=2)

    def open_session(self) -> Session:
        session = Session.connect(self.host, self.port, timeout=2, read_timeout=2)
        self.sessions.append(session)
        return session


class ClientIntegrationTests(EmulatorTestCase):
    def test_light_end_to_end(self):
        light = Light(self.open_session())

        self.assertEqual(light.set_color(Rgb(255, 0, 0)).result, ("ok",))
        props = light.get_prop(Prop.RGB, Prop.COLOR_MODE, Prop.POWER, Prop.NAME)
        self.assertEqual(props, {"rgb": "16711680", "color_mode": "1", "power": "on", "name": "desk"})

        light.set_color(ColorTemperature(2700))
        light.set_bright(Brightness(35))
        self.assertEqual(light.get_prop("ct", "bright"), {"ct": "2700", "bright": "35"})

        light.set_color(Hsv(120, 80), background=True)
        self.assertEqual(light.get_prop("bg_hue", "bg_sat", "bg_lmode"), {"bg_hue": "120", "bg_sat": "80", "bg_lmode": "3"})

        light.toggle()
        self.assertEqual(light.get_prop("power"), {"power": "off"})
        light.turn_on()

        light.start_flow([
            FlowExpression(TransitionDuration(1000), Rgb(0, 0, 255), Brightness(100)),
            FlowExpression(TransitionDuration(500)),
        ])
        self.assertEqual(light.get_prop("flowing"), {"flowing": "1"})
        light.stop_flow()

        light.cron_add(Delay(15))
        self.assertEqual(light.cron_get().result, ("15",))

        light.adjust_bright(Percentage(10))
        self.assertEqual(light.get_prop("bright"), {"bright": "45"})

        light.set_name("kitchen")
        self.assertEqual(light.get_prop("name"), {"name": "kitchen"})

    def test_ids_keep_increasing_and_rejections_are_not_fatal(self):
        session = self.open_session()
        first = session.send("toggle")
        with self.assertRaises(CommandRejected) as ctx:
            session.send("set_everything", [1])
        self.assertEqual(ctx.exception.request_id, 1)
        third = session.send("toggle")

        self.assertEqual((first.id, third.id), (0, 2))
        self.assertFalse(session.broken)

    def test_notifications_reach_other_sessions(self):
        watcher = self.open_session()
        actor = self.open_session()
        watcher.send("get_prop", ["power"])

        actor.send("set_bright", [10, "sudden", 0])
        actor.send("set_bright", [20, "sudden", 0])

        reply = watcher.send("get_prop", ["bright"])
        self.assertEqual((reply.id, reply.result), (1, ("20",)))


class ConnectionLimitTests(EmulatorTestCase):
    config = EmulatorConfig(host="127.0.0.1", port=0, max_connections=1)

    def test_extra_connection_is_closed_by_device(self):
        first = self.open_session()
        first.send("toggle")

        second = self.open_session()
        with self.assertRaises((ConnectionClosed, TransportFailure)):
            second.send("toggle")
        self.assertTrue(second.broken)
        self.assertFalse(first.broken)


if __name__ == "__main__":
    unittest.main()
