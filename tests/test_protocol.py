import json
import unittest

from yeelight_client.commands import Command, set_color
from yeelight_client.protocol import (
    DecodeError,
    Envelope,
    ErrorReply,
    OpaqueMessage,
    Reply,
    decode_line,
    encode_command,
    encode_envelope,
)
from yeelight_client.values import ColorTemperature, Effect, Hsv, Rgb, TransitionDuration


class EncodeTests(unittest.TestCase):
    def test_encode_envelope(self):
        packet = encode_envelope(Envelope(0, "set_rgb", (255, "smooth", 500)))
        self.assertEqual(packet, b'{"id":0,"method":"set_rgb","params":[255,"smooth",500]}\r\n')

    def test_encode_command_without_params(self):
        packet = encode_command(12, Command("toggle"))
        self.assertEqual(packet, b'{"id":12,"method":"toggle","params":[]}\r\n')

    def test_rgb_is_packed_into_one_param(self):
        for (r, g, b), packed in [((0, 0, 0), 0), ((1, 2, 3), 66051), ((255, 255, 255), 16777215), ((255, 0, 0), 16711680)]:
            command = set_color(Rgb(r, g, b))
            self.assertEqual(command.method, "set_rgb")
            self.assertEqual(command.params[0], r * 65536 + g * 256 + b)
            self.assertEqual(command.params[0], packed)
            self.assertEqual(len(command.params), 3)

    def test_color_temperature_is_repeated_three_times(self):
        for kelvin in (1700, 2700, 6500):
            command = set_color(ColorTemperature(kelvin))
            self.assertEqual(command.method, "set_ct_abx")
            self.assertEqual(list(command.params[:3]), [kelvin, kelvin, kelvin])
            self.assertEqual(len(command.params), 5)

    def test_hsv_keeps_hue_then_saturation(self):
        command = set_color(Hsv(300, 40))
        self.assertEqual(command.method, "set_hsv")
        self.assertEqual(list(command.params[:2]), [300, 40])

    def test_transition_is_always_last_two_params(self):
        duration = TransitionDuration(1200)
        for color in (Rgb(10, 20, 30), ColorTemperature(3000), Hsv(10, 90)):
            for effect in Effect:
                command = set_color(color, effect, duration)
                self.assertEqual(list(command.params[-2:]), [effect.value, 1200])

    def test_round_trip_keeps_method_and_params(self):
        command = Command("set_scene", ("hsv", 120, 50, 30))
        message = json.loads(encode_command(99, command).decode())
        self.assertEqual(message["method"], command.method)
        self.assertEqual(tuple(message["params"]), command.params)


class DecodeTests(unittest.TestCase):
    def test_reply(self):
        self.assertEqual(decode_line(b'{"id":3,"result":["ok"]}\r\n'), Reply(3, ("ok",)))

    def test_reply_without_carriage_return(self):
        self.assertEqual(decode_line(b'{"id":1,"result":["on","100"]}\n'), Reply(1, ("on", "100")))

    def test_notification_is_opaque(self):
        message = decode_line(b'{"method":"props","params":{"power":"on"}}\r\n')
        self.assertIsInstance(message, OpaqueMessage)
        self.assertEqual(message.method, "props")

    def test_error_reply(self):
        message = decode_line(b'{"id":2,"error":{"code":-1,"message":"unsupported method"}}\r\n')
        self.assertIsInstance(message, ErrorReply)
        self.assertEqual((message.id, message.code, message.message), (2, -1, "unsupported method"))

    def test_non_reply_shapes_are_opaque(self):
        for raw in (
            b'{"id":4,"result":[{"type":0,"delay":15}]}\r\n',
            b'{"id":true,"result":["ok"]}\r\n',
            b'{"id":"4","result":["ok"]}\r\n',
            b'{"error":{"code":-1,"message":"invalid command"}}\r\n',
            b'[1,2,3]\r\n',
            b'"ok"\r\n',
        ):
            with self.subTest(raw=raw):
                message = decode_line(raw)
                self.assertIsInstance(message, OpaqueMessage)
                self.assertIsNone(message.method)

    def test_invalid_json(self):
        with self.assertRaises(DecodeError) as ctx:
            decode_line(b"not-json\r\n")
        self.assertEqual(ctx.exception.raw_line, b"not-json\r\n")

    def test_deeply_nested_json_is_a_decode_error(self):
        raw = b"[" * 20000 + b"]" * 20000 + b"\r\n"
        with self.assertRaises(DecodeError) as ctx:
            decode_line(raw)
        self.assertEqual(ctx.exception.raw_line, raw)

    def test_blank_and_binary_lines(self):
        for raw in (b"\r\n", b"\xff\xfe\r\n", b'{"id":1,"result":\r\n'):
            with self.subTest(raw=raw):
                with self.assertRaises(DecodeError):
                    decode_line(raw)


if __name__ == "__main__":
    unittest.main()
