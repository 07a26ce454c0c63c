#!/usr/bin/env python3

# Small utility program to build EAP-SIM/AKA/AKA' identities and to decode
# SIM authentication responses offline.
#
# (C) 2024 by Harald Welte <laforge@osmocom.org>
# SPDX-License-Identifier: GPL-2.0+

import argparse
import logging
import sys

from eapSim.auth import parse_gsm_auth_response, parse_gsm_auth_response_no_length, parse_umts_auth_response
from eapSim.auth import decode_response, render_gsm_records
from eapSim.exceptions import EapSimError
from eapSim.identity import Eap, build_identity, build_encrypted_identity, build_anonymous_identity
from eapSim.identity import build_realm, decorate_pseudonym, split_mcc_mnc
from eapSim.log import EapSimLogger

log = EapSimLogger.get("TOOL")

METHODS = {'sim': Eap.SIM, 'aka': Eap.AKA, 'aka-prime': Eap.AKA_PRIME}


def printable(identity: str) -> str:
    # the encrypted identity prefix is a NUL character
    return identity.replace('\0', '\\0')


def do_identity(opts):
    print(build_identity(METHODS[opts.method], opts.imsi, opts.mcc_mnc))


def do_encrypted_identity(opts):
    identity = build_identity(METHODS[opts.method], opts.imsi, opts.mcc_mnc)
    with open(opts.key_file, 'rb') as f:
        key = f.read()
    print(printable(build_encrypted_identity(identity, key, opts.key_id)))


def do_anonymous(opts):
    mcc, mnc = split_mcc_mnc(opts.mcc_mnc)
    print(build_anonymous_identity(METHODS[opts.method], mcc, mnc, opts.prefix))


def do_pseudonym(opts):
    mcc, mnc = split_mcc_mnc(opts.mcc_mnc)
    print(decorate_pseudonym(opts.pseudonym, mcc, mnc))


def do_realm(opts):
    mcc, mnc = split_mcc_mnc(opts.mcc_mnc)
    print(build_realm(mcc, mnc))


def do_decode_gsm(opts):
    parse = parse_gsm_auth_response_no_length if opts.command == 'decode-gsm-fixed' else parse_gsm_auth_response
    records = [parse(decode_response(r)) for r in opts.response]
    print(render_gsm_records(records))


def do_decode_umts(opts):
    result = parse_umts_auth_response(decode_response(opts.response))
    print("%s %s" % (result.response_type, result.render()))


arg_parser = argparse.ArgumentParser(description="""Build EAP-SIM/AKA/AKA' identities and decode SIM
                                     authentication responses""")
arg_parser.add_argument("--verbose", help="Enable verbose logging", action='store_true', default=False)

subparsers = arg_parser.add_subparsers(dest='command', help="The command to perform", required=True)

parser_identity = subparsers.add_parser('identity', help='Build the permanent identity')
parser_identity.add_argument('--method', choices=METHODS.keys(), default='sim')
parser_identity.add_argument('--imsi', required=True)
parser_identity.add_argument('--mcc-mnc', default='', help='SIM operator (MCC+MNC), derived from IMSI if omitted')

parser_enc_identity = subparsers.add_parser('encrypted-identity', help='Build the encrypted permanent identity')
parser_enc_identity.add_argument('--method', choices=METHODS.keys(), default='sim')
parser_enc_identity.add_argument('--imsi', required=True)
parser_enc_identity.add_argument('--mcc-mnc', default='')
parser_enc_identity.add_argument('--key-file', required=True, help='Carrier RSA public key (PEM or DER)')
parser_enc_identity.add_argument('--key-id', default=None, help='Key identifier to append')

parser_anonymous = subparsers.add_parser('anonymous', help='Build anonymous@realm')
parser_anonymous.add_argument('--method', choices=METHODS.keys(), default='sim')
parser_anonymous.add_argument('--mcc-mnc', required=True)
parser_anonymous.add_argument('--prefix', action='store_true', help='Prepend the EAP method prefix')

parser_pseudonym = subparsers.add_parser('pseudonym', help='Decorate a pseudonym with the realm')
parser_pseudonym.add_argument('--mcc-mnc', required=True)
parser_pseudonym.add_argument('pseudonym')

parser_realm = subparsers.add_parser('realm', help='Print the 3GPP NAI realm')
parser_realm.add_argument('--mcc-mnc', required=True)

parser_decode_gsm = subparsers.add_parser('decode-gsm', help='Decode length-prefixed 2G responses (base64)')
parser_decode_gsm.add_argument('response', nargs='+')

parser_decode_gsm_fixed = subparsers.add_parser('decode-gsm-fixed', help='Decode TS 11.11 2G responses (base64)')
parser_decode_gsm_fixed.add_argument('response', nargs='+')

parser_decode_umts = subparsers.add_parser('decode-umts', help='Decode a 3G response (base64)')
parser_decode_umts.add_argument('response')

COMMANDS = {
    'identity': do_identity,
    'encrypted-identity': do_encrypted_identity,
    'anonymous': do_anonymous,
    'pseudonym': do_pseudonym,
    'realm': do_realm,
    'decode-gsm': do_decode_gsm,
    'decode-gsm-fixed': do_decode_gsm,
    'decode-umts': do_decode_umts,
}

if __name__ == '__main__':

    opts = arg_parser.parse_args()

    EapSimLogger.setup(print, {logging.WARN: "\033[33m", logging.ERROR: "\033[31m"})
    EapSimLogger.set_level(logging.WARN)
    if opts.verbose:
        EapSimLogger.set_verbose(True)
        EapSimLogger.set_level(logging.DEBUG)

    try:
        COMMANDS[opts.command](opts)
    except EapSimError as e:
        log.error(str(e))
        sys.exit(1)
