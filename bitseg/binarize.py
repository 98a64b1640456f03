#!/usr/bin/env python
# -*- coding:utf-8 -*-


"""
binarize task.

Input: a rule file produced by classbench.
Output: a ternary bit matrix where a row is the bit-string of one rule, the
five fields (sip, dip, sport, dport, proto) separated by spaces.
"""


import csv
import os
import re
from concurrent.futures import ProcessPoolExecutor

from .param import *
from .log import g_log_inst


HEX_FMT = re.compile(r'0x[\da-fA-F]+', re.I | re.A)

FIELD_NAMES = ['source ip', 'destination ip', 'source port',
               'destination port', 'protocol']


class FormatError(ValueError):
    """A classbench field, record or rule line could not be parsed."""


def _parse_int(s, what):
    try:
        return int(s.strip())
    except ValueError:
        raise FormatError("Malformed %s value: %r" % (what, s))


def ip_to_bitstring(ip):
    splits = ip.split('/')
    if len(splits) != 2:
        raise FormatError("Malformed IP field: %r" % ip)
    addr, masklen = splits[0].strip(), _parse_int(splits[1], 'mask')
    if not 0 <= masklen <= FIELD_LENTH[DIM_SIP]:
        raise FormatError("Malformed mask value: %r" % ip)

    octets = addr.split('.')
    if len(octets) != 4:
        raise FormatError("Malformed IP value: %r" % ip)
    ipval = 0
    for octet in octets:
        if not octet.isdigit():
            raise FormatError("Malformed IP value: %r" % ip)
        val = _parse_int(octet, "IP")
        if val > UINT8_MAX:
            raise FormatError("Malformed IP value: %r" % ip)
        ipval = (ipval << 8) | val

    ipstr = format(ipval, '032b')
    return ipstr[:masklen] + WILDCARD * (32 - masklen)


# The full range 0 : 65535 means "don't care". Any other range is reduced
# to its beginning port, the end is dropped.
def port_to_bitstring(port):
    splits = port.split(':')
    if len(splits) != 2:
        raise FormatError("Malformed port field: %r" % port)
    begin = _parse_int(splits[0], 'port')
    end = _parse_int(splits[1], 'port')
    if begin == 0 and end == UINT16_MAX:
        return WILDCARD * 16
    if not 0 <= begin <= UINT16_MAX:
        raise FormatError("Malformed port value: %r" % port)
    return format(begin, '016b')


# Parses a hex string that starts with "0x"
def parse_hex(s):
    s = s.strip()
    if not HEX_FMT.fullmatch(s):
        raise FormatError("Malformed hex value: %r" % s)
    val = int(s[2:], 16)
    if not 0 <= val <= UINT8_MAX:
        raise FormatError("Hex value out of range: %r" % s)
    return val


def proto_to_bitstring(proto):
    splits = proto.split('/')
    if len(splits) != 2:
        raise FormatError("Malformed protocol field: %r" % proto)
    protostr = format(parse_hex(splits[0]), '08b')
    maskstr = format(parse_hex(splits[1]), '08b')
    return ''.join(p if m == '1' else WILDCARD
                   for p, m in zip(protostr, maskstr))


def row_to_bitstring(record):
    if len(record) < DIM_MAX:
        raise FormatError("Malformed input: missing %s field"
                          % FIELD_NAMES[len(record)])
    srcip, dstip, srcport, dstport, proto = record[:DIM_MAX]
    return ' '.join([
        ip_to_bitstring(srcip.strip()[1:]),  # srcip starts with @
        ip_to_bitstring(dstip),
        port_to_bitstring(srcport),
        port_to_bitstring(dstport),
        proto_to_bitstring(proto),
    ])


# picklable worker for the process pool, tags errors with the record number
def encode_record(item):
    idx, record = item
    try:
        return row_to_bitstring(record)
    except FormatError as e:
        raise FormatError("record %d: %s" % (idx, e))


def read_records(filename):
    print("Reading file %s." % filename)
    with open(filename, newline='') as fin:
        reader = csv.reader(fin, delimiter='\t')
        ret = [record for record in reader if record]
    print("Read %d records." % len(ret))
    return ret


# Encode every record. The output keeps the input order whether or not a
# process pool is used.
def process(records, jobs=1):
    items = list(enumerate(records))
    if jobs == 1 or len(items) < 2:
        return [encode_record(item) for item in items]
    chunksize = max(1, len(items) // (jobs * 4))
    with ProcessPoolExecutor(max_workers=jobs) as executor:
        return list(executor.map(encode_record, items, chunksize=chunksize))


def write_lines(bitstrings, filename):
    out_dir = os.path.dirname(filename)
    if out_dir and not os.path.isdir(out_dir):
        os.makedirs(out_dir)
    with open(filename, 'w') as fout:
        for bs in bitstrings:
            fout.write("%s\n" % bs)


# Build the rule matrix from encoded lines. Only the ternary symbols are kept,
# so the field separators of the binarize output are dropped.
def build_ruleset(lines, width=BIT_LENGTH):
    ruleset = []
    for idx, line in enumerate(lines):
        rule = ''.join(ch for ch in line if ch in SYMBOLS)
        if not rule:
            continue
        if len(rule) != width:
            raise FormatError("rule %d has %d bits, expected %d"
                              % (idx, len(rule), width))
        ruleset.append(rule)
    g_log_inst.get().debug("built rule set of %d rules, width %d"
                           % (len(ruleset), width))
    return ruleset


def load_ruleset(filename, width=BIT_LENGTH):
    with open(filename) as fin:
        ruleset = build_ruleset(fin, width)
    print("Loaded %d rules" % len(ruleset))
    return ruleset


def run(infile, outfile, jobs=1):
    print("====>  binarize started")
    g_log_inst.get().info("binarize %s -> %s" % (infile, outfile))
    data = read_records(infile)
    result = process(data, jobs)
    write_lines(result, outfile)
    print("====>  binarize finished")
    return result
