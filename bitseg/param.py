#!/usr/bin/env python
# -*- coding:utf-8 -*-


# packet header format
DIM_SIP, DIM_DIP, DIM_SPORT, DIM_DPORT, DIM_PROTO, DIM_MAX = range(6)
UINT32_MAX, UINT16_MAX, UINT8_MAX = ((1 << i) - 1 for i in [32, 16, 8])
FIELD_LENTH = [32, 32, 16, 16, 8]
BIT_LENGTH = 104


# ternary symbols
WILDCARD = '_'
SYMBOLS = ('0', '1', WILDCARD)


# dictionary cost model: segments no wider than this carry no table cost
DICT_COST_MIN_WIDTH = 20


# file locations
CLASSBENCH_DIR = '../neurocuts/classbench'
DATA_DIR = './data'
LOG_FILE = '../log/bitseg.log'
