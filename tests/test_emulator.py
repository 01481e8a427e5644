import unittest

from bulb_emulator.app import BulbTCPServer
from bulb_emulator.config import EmulatorConfig
from bulb_emulator.protocol import RequestError, error_message, parse_request_line, result_message


class EmulatorProtocolTests(unittest.TestCase):
    def test_valid_request(self):
        request = parse_request_line(b'{"id":1,"method":"toggle","params":[]}\r\n')
        self.assertEqual((request["id"], request["method"], request["params"]), (1, "toggle", []))

    def test_invalid_requests(self):
        for raw in (b"not-json\r\n", b'{"method":"toggle"}\r\n', b"[1]\r\n", b"\r\n"):
            with self.subTest(raw=raw):
                with self.assertRaises(RequestError):
                    parse_request_line(raw)

    def test_missing_method_keeps_id(self):
        with self.assertRaises(RequestError) as ctx:
            parse_request_line(b'{"id":4,"params":[]}\r\n')
        self.assertEqual(ctx.exception.request_id, 4)

    def test_messages(self):
        self.assertEqual(result_message(3, ["ok"]), b'{"id":3,"result":["ok"]}\r\n')
        self.assertEqual(
            error_message(-1, "unsupported method", 3),
            b'{"id":3,"error":{"code":-1,"message":"unsupported method"}}\r\n',
        )
        self.assertEqual(error_message(-1, "invalid command"), b'{"error":{"code":-1,"message":"invalid command"}}\r\n')


class EmulatorDispatchTests(unittest.TestCase):
    def setUp(self):
        self.server = BulbTCPServer(EmulatorConfig(host="127.0.0.1", port=0, name="desk"))

    def tearDown(self):
        self.server.server_close()

    def test_colour_methods_change_state(self):
        result, changes = self.server.dispatch("set_rgb", [255, "smooth", 500])
        self.assertEqual(result, ["ok"])
        self.assertEqual(changes, {"rgb": 255, "color_mode": 1})

        self.server.dispatch("set_hsv", [200, 50, "sudden", 0])
        result, _ = self.server.dispatch("get_prop", ["hue", "sat", "color_mode", "name", "unknown"])
        self.assertEqual(result, ["200", "50", "3", "desk", ""])

    def test_background_methods_are_prefixed(self):
        result, changes = self.server.dispatch("bg_set_bright", [30, "smooth", 200])
        self.assertEqual(changes, {"bg_bright": 30})
        result, _ = self.server.dispatch("get_prop", ["bg_bright", "bright"])
        self.assertEqual(result, ["30", "100"])

    def test_invalid_params_are_rejected(self):
        for method, params in [
            ("set_rgb", [0x1000000, "smooth", 500]),
            ("set_ct_abx", [1000, "smooth", 500]),
            ("set_bright", [50, "fade", 500]),
            ("set_power", ["maybe", "smooth", 500]),
            ("start_cf", [0, 0, "1000,1,255"]),
            ("set_adjust", ["increase", "color"]),
        ]:
            with self.subTest(method=method):
                with self.assertRaises(RequestError):
                    self.server.dispatch(method, params)

    def test_unknown_method(self):
        with self.assertRaisesRegex(RequestError, "not supported"):
            self.server.dispatch("set_everything", [])

    def test_toggle_flow_cron_and_adjust(self):
        self.server.dispatch("toggle", [])
        self.assertEqual(self.server.state.main.power, "off")
        self.server.dispatch("dev_toggle", [])
        self.assertEqual((self.server.state.main.power, self.server.state.bg.power), ("on", "on"))

        self.server.dispatch("start_cf", [0, 1, "1000,2,2700,100"])
        self.assertEqual(self.server.state.main.flowing, 1)
        self.server.dispatch("stop_cf", [])
        self.assertEqual(self.server.state.main.flowing, 0)

        self.server.dispatch("cron_add", [0, 15])
        self.assertEqual(self.server.dispatch("cron_get", [0])[0], ["15"])
        self.server.dispatch("cron_del", [0])
        self.assertEqual(self.server.dispatch("cron_get", [0])[0], ["0"])

        self.server.dispatch("adjust_bright", [-30, 500])
        self.assertEqual(self.server.state.main.bright, 70)
        self.server.dispatch("set_adjust", ["increase", "bright"])
        self.assertEqual(self.server.state.main.bright, 80)

    def test_scene_turns_light_on(self):
        self.server.dispatch("set_power", ["off", "sudden", 0])
        result, changes = self.server.dispatch("set_scene", ["ct", 2700, 40])
        self.assertEqual(changes, {"power": "on", "bright": 40})
        self.assertEqual(self.server.state.main.ct, 2700)


if __name__ == "__main__":
    unittest.main()
