#!/usr/bin/env python3

import base64
import unittest

from eapSim.auth import *
from eapSim.exceptions import InvalidAuthResponse

def b64(buf: bytes) -> str:
    return base64.b64encode(bytes(buf)).decode('ascii')

GSM_RSP = bytes([0x04, 0x11, 0x22, 0x33, 0x44, 0x08, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF, 0x00, 0x01])
GSM_RSP_NO_LEN = bytes([0x11, 0x22, 0x33, 0x44, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF, 0x00, 0x01])

class FakeSimAuthCommand(SimAuthCommand):
    """Replays canned responses and records the commands it was asked to run."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.commands = []

    def run(self, sub_id, app_type, auth_type, base64_challenge):
        self.commands.append((sub_id, app_type, auth_type, base64.b64decode(base64_challenge)))
        return self.responses.pop(0)

class ParseGsmTestCase(unittest.TestCase):

    def testParse(self):
        record = parse_gsm_auth_response(GSM_RSP)
        self.assertEqual(record.kc, bytes.fromhex("aabbccddeeff0001"))
        self.assertEqual(record.sres, bytes.fromhex("11223344"))
        self.assertEqual(record.render(), ":aabbccddeeff0001:11223344")

    def testParseTrailingBytes(self):
        record = parse_gsm_auth_response(GSM_RSP + b'\x99\x99')
        self.assertEqual(record.render(), ":aabbccddeeff0001:11223344")

    def testParseTooShort(self):
        for buf in [None, b'', b'\x01\x11\x01\x22']:
            with self.assertRaises(InvalidAuthResponse):
                parse_gsm_auth_response(buf)

    def testParseSresOverrun(self):
        # sres length points at the end of the buffer, no room for the Kc length
        with self.assertRaises(InvalidAuthResponse):
            parse_gsm_auth_response(bytes([0x04, 0x11, 0x22, 0x33, 0x44]))
        with self.assertRaises(InvalidAuthResponse):
            parse_gsm_auth_response(bytes([0x10, 0x11, 0x22, 0x33, 0x44, 0x55]))

    def testParseKcOverrun(self):
        with self.assertRaises(InvalidAuthResponse):
            parse_gsm_auth_response(GSM_RSP[:-1])

    def testParseKcExactFit(self):
        record = parse_gsm_auth_response(bytes([0x01, 0x11, 0x03, 0xAA, 0xBB, 0xCC]))
        self.assertEqual(record.render(), ":aabbcc:11")

    def testParseNegativeLength(self):
        with self.assertRaises(InvalidAuthResponse):
            parse_gsm_auth_response(bytes([0x80]) + bytes(200))
        with self.assertRaises(InvalidAuthResponse):
            parse_gsm_auth_response(bytes([0x01, 0x11, 0xff]) + bytes(200))

    def testParseNoLength(self):
        record = parse_gsm_auth_response_no_length(GSM_RSP_NO_LEN)
        self.assertEqual(record, GsmAuthRecord(kc=bytes.fromhex("aabbccddeeff0001"), sres=bytes.fromhex("11223344")))

    def testParseNoLengthWrongSize(self):
        for buf in [None, GSM_RSP_NO_LEN[:11], GSM_RSP_NO_LEN + b'\x00']:
            with self.assertRaises(InvalidAuthResponse):
                parse_gsm_auth_response_no_length(buf)

class ParseUmtsTestCase(unittest.TestCase):

    def testSuccess(self):
        result = parse_umts_auth_response(bytes([0xDB, 0x02, 0x01, 0x02, 0x02, 0x03, 0x04, 0x02, 0x05, 0x06]))
        self.assertEqual(result, UmtsAuthSuccess(res=b'\x01\x02', ck=b'\x03\x04', ik=b'\x05\x06'))
        self.assertEqual(result.render(), ":0506:0304:0102")
        self.assertEqual(result.response_type, UMTS_AUTH_RESP_TYPE)

    def testSuccessWithKc(self):
        # a trailing Kc (GSM access context) is ignored
        buf = bytes([0xDB, 0x01, 0x01, 0x01, 0x02, 0x01, 0x03, 0x08]) + bytes(8)
        self.assertEqual(parse_umts_auth_response(buf).render(), ":03:02:01")

    def testSyncFailure(self):
        result = parse_umts_auth_response(bytes([0xDC, 0x02, 0xAA, 0xBB]))
        self.assertEqual(result, UmtsAuthSyncFailure(auts=b'\xaa\xbb'))
        self.assertEqual(result.render(), ":aabb")
        self.assertEqual(result.response_type, UMTS_AUTS_RESP_TYPE)
        self.assertNotEqual(result.response_type, UmtsAuthSuccess.response_type)

    def testUnknownTag(self):
        with self.assertRaises(InvalidAuthResponse):
            parse_umts_auth_response(bytes([0x98, 0x62, 0x00, 0x00, 0x00]))

    def testEmpty(self):
        for buf in [None, b'']:
            with self.assertRaises(InvalidAuthResponse):
                parse_umts_auth_response(buf)

    def testNestedLengthOverrun(self):
        for buf in [bytes([0xDB, 0x10, 0x01, 0x02]),
                    bytes([0xDB, 0x01, 0x01, 0x05, 0x02]),
                    bytes([0xDB, 0x01, 0x01, 0x01, 0x02, 0x04, 0x03]),
                    bytes([0xDB, 0x01, 0x01, 0x01, 0x02]),
                    bytes([0xDC, 0x0e, 0xAA, 0xBB]),
                    bytes([0xDC])]:
            with self.assertRaises(InvalidAuthResponse):
                parse_umts_auth_response(buf)

    def testNegativeLength(self):
        with self.assertRaises(InvalidAuthResponse):
            parse_umts_auth_response(bytes([0xDC, 0xfe]) + bytes(300))

    def testSuccessTooShort(self):
        for buf in [bytes([0xDB, 0x00, 0x00, 0x00]), bytes([0xDB, 0x00, 0x00]), bytes([0xDB, 0x01, 0x01, 0x00])]:
            with self.assertRaises(InvalidAuthResponse):
                parse_umts_auth_response(buf)

    def testSyncFailureShortBuffer(self):
        self.assertEqual(parse_umts_auth_response(bytes([0xDC, 0x00])), UmtsAuthSyncFailure(b''))

class DecodeResponseTestCase(unittest.TestCase):

    def testDecode(self):
        self.assertEqual(decode_response(b64(GSM_RSP)), GSM_RSP)

    def testAbsentOrShort(self):
        for rsp in [None, "", "AAA=", "3AI="]:
            with self.assertRaises(InvalidAuthResponse):
                decode_response(rsp)

    def testNotBase64(self):
        with self.assertRaises(InvalidAuthResponse):
            decode_response("AAAAA")

class GsmAuthTestCase(unittest.TestCase):

    def testWithLength(self):
        sim = FakeSimAuthCommand([b64(GSM_RSP)])
        records = gsm_auth_with_length(["00112233445566778899aabbccddeeff"], sim, 3)
        self.assertEqual(render_gsm_records(records), ":aabbccddeeff0001:11223344")
        sub_id, app_type, auth_type, cmd = sim.commands[0]
        self.assertEqual((sub_id, app_type, auth_type), (3, AppType.USIM, AuthType.EAP_SIM))
        self.assertEqual(cmd, bytes.fromhex("1000112233445566778899aabbccddeeff"))

    def testWithLengthSimApp(self):
        sim = FakeSimAuthCommand([b64(GSM_RSP)])
        gsm_auth_with_length(["0011"], sim, 1, AppType.SIM)
        self.assertEqual(sim.commands[0][1], AppType.SIM)

    def testMalformedChallengeSkipped(self):
        rsp1 = bytes([0x04, 0x01, 0x01, 0x01, 0x01, 0x08]) + bytes([0x11] * 8)
        rsp3 = bytes([0x04, 0x03, 0x03, 0x03, 0x03, 0x08]) + bytes([0x33] * 8)
        sim = FakeSimAuthCommand([b64(rsp1), b64(rsp3)])
        records = gsm_auth_with_length(["01" * 16, "zz" * 16, "03" * 16], sim, 1)
        self.assertEqual(len(sim.commands), 2)
        self.assertEqual(render_gsm_records(records),
                         ":" + "11" * 8 + ":01010101" + ":" + "33" * 8 + ":03030303")

    def testEmptyChallengesSkipped(self):
        sim = FakeSimAuthCommand([])
        self.assertEqual(gsm_auth_with_length(["", None, ""], sim, 1), [])
        self.assertEqual(sim.commands, [])

    def testAllMalformed(self):
        sim = FakeSimAuthCommand([])
        self.assertEqual(render_gsm_records(gsm_auth_with_length(["abc", "xy"], sim, 1)), "")

    def testInvalidResponseAbortsBatch(self):
        sim = FakeSimAuthCommand([b64(GSM_RSP), None, b64(GSM_RSP)])
        with self.assertRaises(InvalidAuthResponse):
            gsm_auth_with_length(["00" * 16, "11" * 16, "22" * 16], sim, 1)
        self.assertEqual(len(sim.commands), 2)

    def testBadResponseAbortsBatch(self):
        sim = FakeSimAuthCommand([b64(GSM_RSP), b64(GSM_RSP[:-3])])
        with self.assertRaises(InvalidAuthResponse):
            gsm_auth_with_length(["00" * 16, "11" * 16], sim, 1)

    def testNoLength(self):
        sim = FakeSimAuthCommand([b64(GSM_RSP_NO_LEN), b64(GSM_RSP_NO_LEN)])
        records = gsm_auth_no_length(["00112233445566778899aabbccddeeff", "ff" * 16], sim, 2)
        self.assertEqual(render_gsm_records(records), ":aabbccddeeff0001:11223344" * 2)
        sub_id, app_type, auth_type, cmd = sim.commands[0]
        self.assertEqual((sub_id, app_type, auth_type), (2, AppType.SIM, AuthType.EAP_SIM))
        self.assertEqual(cmd, bytes.fromhex("00112233445566778899aabbccddeeff"))

    def testNoLengthWrongSize(self):
        for rsp in [GSM_RSP_NO_LEN[:11], GSM_RSP_NO_LEN + b'\x00']:
            sim = FakeSimAuthCommand([b64(rsp)])
            with self.assertRaises(InvalidAuthResponse):
                gsm_auth_no_length(["00" * 16], sim, 2)

class UmtsAuthTestCase(unittest.TestCase):

    RAND = "00112233445566778899aabbccddeeff"
    AUTN = "ffeeddccbbaa99887766554433221100"

    def testSuccess(self):
        sim = FakeSimAuthCommand([b64([0xDB, 0x02, 0x01, 0x02, 0x02, 0x03, 0x04, 0x02, 0x05, 0x06])])
        result = umts_auth([self.RAND, self.AUTN], sim, 5)
        self.assertEqual(result.render(), ":0506:0304:0102")
        sub_id, app_type, auth_type, cmd = sim.commands[0]
        self.assertEqual((sub_id, app_type, auth_type), (5, AppType.USIM, AuthType.EAP_AKA))
        self.assertEqual(cmd, bytes.fromhex("10" + self.RAND + "10" + self.AUTN))

    def testSyncFailure(self):
        sim = FakeSimAuthCommand([b64([0xDC, 0x02, 0xAA, 0xBB])])
        result = umts_auth([self.RAND, self.AUTN], sim, 5)
        self.assertIsInstance(result, UmtsAuthSyncFailure)
        self.assertEqual(result.render(), ":aabb")

    def testWrongCount(self):
        for data in [[], [self.RAND], [self.RAND, self.AUTN, self.AUTN], None]:
            sim = FakeSimAuthCommand([])
            with self.assertRaises(InvalidAuthResponse):
                umts_auth(data, sim, 5)
            self.assertEqual(sim.commands, [])

    def testMalformedChallenge(self):
        sim = FakeSimAuthCommand([])
        with self.assertRaises(InvalidAuthResponse):
            umts_auth([self.RAND, "xyz"], sim, 5)
        self.assertEqual(sim.commands, [])

    def testNoResponse(self):
        for rsp in [None, "", "3AI="]:
            sim = FakeSimAuthCommand([rsp])
            with self.assertRaises(InvalidAuthResponse):
                umts_auth([self.RAND, self.AUTN], sim, 5)

    def testEmptySuccess(self):
        sim = FakeSimAuthCommand([b64([0xDB, 0x00, 0x00, 0x00])])
        with self.assertRaises(InvalidAuthResponse):
            umts_auth([self.RAND, self.AUTN], sim, 5)

    def testUnknownTag(self):
        sim = FakeSimAuthCommand([b64([0x6a, 0x82, 0x00, 0x00])])
        with self.assertRaises(InvalidAuthResponse):
            umts_auth([self.RAND, self.AUTN], sim, 5)

if __name__ == "__main__":
    unittest.main()
