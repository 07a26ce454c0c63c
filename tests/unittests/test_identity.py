#!/usr/bin/env python3

import base64
import unittest

from Cryptodome.Cipher import PKCS1_OAEP
from Cryptodome.Hash import SHA256
from Cryptodome.PublicKey import RSA, ECC

from eapSim.identity import *
from eapSim.exceptions import MissingImsi, UnsupportedMethod, EncryptionFailed

IMSI = "310150123456789"

class RealmTestCase(unittest.TestCase):

    def testTwoDigitMnc(self):
        self.assertEqual(build_realm("310", "12"), "wlan.mnc012.mcc310.3gppnetwork.org")

    def testThreeDigitMnc(self):
        self.assertEqual(build_realm("310", "260"), "wlan.mnc260.mcc310.3gppnetwork.org")

    def testOtherLengthsPassThrough(self):
        self.assertEqual(build_realm("310", "1"), "wlan.mnc1.mcc310.3gppnetwork.org")
        self.assertEqual(build_realm("310", "1234"), "wlan.mnc1234.mcc310.3gppnetwork.org")

class EapMethodTestCase(unittest.TestCase):

    def testPrefix(self):
        self.assertEqual(eap_method_prefix(Eap.SIM), "1")
        self.assertEqual(eap_method_prefix(Eap.AKA), "0")
        self.assertEqual(eap_method_prefix(Eap.AKA_PRIME), "6")

    def testPrefixUnsupported(self):
        for method in [Eap.NONE, Eap.PEAP, Eap.TLS]:
            with self.assertRaises(UnsupportedMethod):
                eap_method_prefix(method)

    def testSimEapMethodFor(self):
        self.assertEqual(sim_eap_method_for(Eap.SIM), Eap.SIM)
        self.assertEqual(sim_eap_method_for(Eap.AKA, Phase2.NONE), Eap.AKA)
        self.assertEqual(sim_eap_method_for(Eap.AKA_PRIME), Eap.AKA_PRIME)

    def testSimEapMethodForPeap(self):
        self.assertEqual(sim_eap_method_for(Eap.PEAP, Phase2.SIM), Eap.SIM)
        self.assertEqual(sim_eap_method_for(Eap.PEAP, Phase2.AKA), Eap.AKA)
        self.assertEqual(sim_eap_method_for(Eap.PEAP, Phase2.AKA_PRIME), Eap.AKA_PRIME)

    def testSimEapMethodForNotSimBased(self):
        self.assertEqual(sim_eap_method_for(Eap.PEAP, Phase2.MSCHAPV2), Eap.NONE)
        self.assertEqual(sim_eap_method_for(Eap.TTLS, Phase2.SIM), Eap.NONE)
        self.assertEqual(sim_eap_method_for(Eap.TLS), Eap.NONE)

class IdentityTestCase(unittest.TestCase):

    def testBuildIdentity(self):
        self.assertEqual(build_identity(Eap.SIM, IMSI, "31015"),
                         "1310150123456789@wlan.mnc015.mcc310.3gppnetwork.org")

    def testBuildIdentityThreeDigitMnc(self):
        self.assertEqual(build_identity(Eap.AKA, IMSI, "310150"),
                         "0310150123456789@wlan.mnc150.mcc310.3gppnetwork.org")

    def testBuildIdentityFromImsi(self):
        # MNC is assumed to have 3 digits
        self.assertEqual(build_identity(Eap.AKA_PRIME, IMSI, ""),
                         "6310150123456789@wlan.mnc150.mcc310.3gppnetwork.org")
        self.assertEqual(build_identity(Eap.AKA_PRIME, IMSI),
                         "6310150123456789@wlan.mnc150.mcc310.3gppnetwork.org")

    def testBuildIdentityMissingImsi(self):
        with self.assertRaises(MissingImsi):
            build_identity(Eap.SIM, "", "31015")
        with self.assertRaises(MissingImsi):
            build_identity(Eap.SIM, None, "31015")

    def testBuildIdentityUnsupportedMethod(self):
        with self.assertRaises(UnsupportedMethod):
            build_identity(Eap.NONE, IMSI, "31015")

class EncryptedIdentityTestCase(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.key = RSA.generate(2048)

    def decrypt(self, ciphertext_b64: str) -> str:
        cipher = PKCS1_OAEP.new(self.key, hashAlgo=SHA256)
        return cipher.decrypt(base64.b64decode(ciphertext_b64)).decode('utf-8')

    def testEncryptedIdentity(self):
        identity = build_identity(Eap.SIM, IMSI, "31015")
        encrypted = build_encrypted_identity(identity, self.key.public_key())
        self.assertEqual(encrypted[0], "\0")
        self.assertNotIn(",", encrypted)
        self.assertNotIn("\n", encrypted)
        self.assertEqual(self.decrypt(encrypted[1:]), identity)

    def testEncryptedIdentityWithKeyIdentifier(self):
        identity = build_identity(Eap.AKA, IMSI, "31015")
        encrypted = build_encrypted_identity(identity, self.key.public_key(), "CertificateSerialNumber=1234")
        body, key_id = encrypted[1:].split(",", 1)
        self.assertEqual(key_id, "CertificateSerialNumber=1234")
        self.assertEqual(self.decrypt(body), identity)

    def testEncryptedIdentityPemKey(self):
        identity = build_identity(Eap.SIM, IMSI, "31015")
        pem = self.key.public_key().export_key(format='PEM')
        encrypted = build_encrypted_identity(identity, pem)
        self.assertEqual(self.decrypt(encrypted[1:]), identity)

    def testEncryptWithPublicKeyIsRandomized(self):
        data = b"1310150123456789"
        self.assertNotEqual(encrypt_with_public_key(self.key.public_key(), data),
                            encrypt_with_public_key(self.key.public_key(), data))

    def testEncryptionFailedBadKey(self):
        with self.assertRaises(EncryptionFailed):
            build_encrypted_identity("1310150123456789@realm", b"not a key")

    def testEncryptionFailedWrongKeyType(self):
        with self.assertRaises(EncryptionFailed):
            build_encrypted_identity("1310150123456789@realm", 42)

    def testEncryptionFailedEccKey(self):
        ecc_key = ECC.generate(curve='secp256r1')
        with self.assertRaises(EncryptionFailed):
            build_encrypted_identity("1310150123456789@realm", ecc_key.public_key().export_key(format='PEM'))

    def testEncryptionFailedTooLong(self):
        # OAEP with SHA-256 fits at most 256 - 2*32 - 2 bytes into a 2048 bit block
        with self.assertRaises(EncryptionFailed):
            build_encrypted_identity("x" * 191, self.key.public_key())

class AnonymousIdentityTestCase(unittest.TestCase):

    def testAnonymous(self):
        self.assertEqual(build_anonymous_identity(Eap.SIM, "310", "12"),
                         "anonymous@wlan.mnc012.mcc310.3gppnetwork.org")

    def testAnonymousWithPrefix(self):
        self.assertEqual(build_anonymous_identity(Eap.AKA, "310", "120", True),
                         "0anonymous@wlan.mnc120.mcc310.3gppnetwork.org")

    def testAnonymousWithPrefixUnregisteredMethod(self):
        self.assertEqual(build_anonymous_identity(Eap.PEAP, "310", "120", True),
                         "anonymous@wlan.mnc120.mcc310.3gppnetwork.org")

    def testIsAnonymousAtRealm(self):
        self.assertTrue(is_anonymous_at_realm("anonymous@realm"))
        self.assertTrue(is_anonymous_at_realm("1anonymous@realm"))
        self.assertFalse(is_anonymous_at_realm("bob@realm"))
        self.assertFalse(is_anonymous_at_realm(""))
        self.assertFalse(is_anonymous_at_realm(None))
        self.assertFalse(is_anonymous_at_realm("anonymous"))

class PseudonymTestCase(unittest.TestCase):

    def testDecorate(self):
        self.assertEqual(decorate_pseudonym("pseudo", "310", "12"),
                         "pseudo@wlan.mnc012.mcc310.3gppnetwork.org")

    def testAlreadyDecorated(self):
        self.assertEqual(decorate_pseudonym("pseudo@some.realm", "310", "12"), "pseudo@some.realm")

    def testEmpty(self):
        self.assertIsNone(decorate_pseudonym("", "310", "12"))
        self.assertIsNone(decorate_pseudonym(None, "310", "12"))

if __name__ == "__main__":
    unittest.main()
