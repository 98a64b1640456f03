#!/usr/bin/env python
# -*- coding:utf-8 -*-


"""
functions for segment cuts.

The rule matrix (n rules of W ternary bits) is cut into contiguous column
segments. Each segment is assumed to be dictionary encoded: every rule
stores a b-bit index instead of the raw w bits, and segments wider than
DICT_COST_MIN_WIDTH also pay for a K-entry table. The savings matrix holds
the net saving of every segment [i, j); the optimal cuts are found by a DP
over prefix lengths.
"""


import time
from collections import namedtuple
from concurrent.futures import ProcessPoolExecutor

from .param import *
from .log import g_log_inst
from .binarize import FormatError


SegmentResult = namedtuple('SegmentResult', ['rule_num', 'width',
    'total_cost', 'saving', 'cut_points', 'verified_saving', 'build_time'])


class SegmentationError(RuntimeError):
    """The replayed cut sequence disagrees with the optimal saving."""


# number of bits to index k dictionary entries, ceil(log2(k))
def index_bits(k):
    if k <= 1:
        return 0
    return (k - 1).bit_length()


def net_saving(k, w, n):
    b = index_bits(k)
    saving = (w - b) * n
    cost = k * (w + b) if w > DICT_COST_MIN_WIDTH else 0
    return saving - cost


# Count distinct values of the column range [i, j) over all rules. By default
# the slices are deduplicated through their 64-bit hash, so a collision
# undercounts K.
def distinct_values(ruleset, i, j, exact=False):
    if exact:
        return len({rule[i:j] for rule in ruleset})
    return len({hash(rule[i:j]) for rule in ruleset})


def build_row(ruleset, i, width=BIT_LENGTH, exact=False):
    n = len(ruleset)
    row = [0] * (width + 1)
    for j in range(i + 1, width + 1):
        k = distinct_values(ruleset, i, j, exact)
        row[j] = net_saving(k, j - i, n)
    return row


def check_ruleset(ruleset, width):
    for idx, rule in enumerate(ruleset):
        if len(rule) != width:
            raise FormatError("rule %d has %d bits, expected %d"
                              % (idx, len(rule), width))


# pool worker state, set once per process by the initializer
_worker_ruleset = None
_worker_args = None


def _init_worker(ruleset, width, exact):
    global _worker_ruleset, _worker_args
    _worker_ruleset = ruleset
    _worker_args = (width, exact)


def _build_row_worker(i):
    width, exact = _worker_args
    return build_row(_worker_ruleset, i, width, exact)


def build_s_mat(ruleset, width=BIT_LENGTH, jobs=1, exact=False):
    check_ruleset(ruleset, width)
    g_log_inst.get().debug("build_s_mat: n=%d, W=%d, jobs=%d"
                           % (len(ruleset), width, jobs))
    rows = range(width + 1)
    if jobs == 1:
        s_mat = [build_row(ruleset, i, width, exact) for i in rows]
    else:
        with ProcessPoolExecutor(max_workers=jobs, initializer=_init_worker,
                initargs=(ruleset, width, exact)) as executor:
            s_mat = list(executor.map(_build_row_worker, rows))
    return s_mat


def find_optimal_cuts(s_mat):
    width = len(s_mat) - 1
    savings = [0] * (width + 1)
    paths = []
    for j in range(width + 1):
        savings[j] = s_mat[0][j]
        best_i = None
        # ties keep the smallest i
        for i in range(j):
            better = savings[i] + s_mat[i][j]
            if savings[j] < better:
                savings[j] = better
                best_i = i
        if best_i is not None:
            paths.append(paths[best_i] + [best_i])
        else:
            paths.append([])
        g_log_inst.get().debug("prefix %d: saving %d, cuts %r"
                               % (j, savings[j], paths[j]))
    return savings, paths


def get_savings(cuts, s_mat):
    width = len(s_mat) - 1
    start = 0
    ret = 0
    for c in cuts:
        ret += s_mat[start][c]
        start = c
    ret += s_mat[start][width]
    return ret


def segment(ruleset, width=BIT_LENGTH, jobs=1, exact=False):
    start_time = time.time()
    s_mat = build_s_mat(ruleset, width, jobs, exact)
    build_time = time.time() - start_time
    g_log_inst.get().info("savings matrix built in %.03f s" % build_time)

    savings, paths = find_optimal_cuts(s_mat)
    verified = get_savings(paths[width], s_mat)
    if verified != savings[width]:
        raise SegmentationError("cuts %r replay to %d, optimum is %d"
                                % (paths[width], verified, savings[width]))

    return SegmentResult(rule_num=len(ruleset), width=width,
        total_cost=width * len(ruleset), saving=savings[width],
        cut_points=paths[width], verified_saving=verified,
        build_time=build_time)


def print_report(result):
    print("Took %dms." % int(result.build_time * 1000))
    print("Total uncompressed cost = %d" % result.total_cost)
    print("Saving = %d" % result.saving)
    if result.total_cost:
        print("Saving %% = %f" % (float(result.saving) / result.total_cost))
    print("Cut points = %s" % result.cut_points)
    print("Verify savings = %d" % result.verified_saving)


def run(ruleset, width=BIT_LENGTH, jobs=1, exact=False):
    print("====>  segmentation started")
    result = segment(ruleset, width, jobs, exact)
    print("====>  segmentation finished")
    print_report(result)
    return result
