#!/usr/bin/env python
# -*- coding:utf-8 -*-


import os
import sys
import time
import argparse

from .param import *
from .log import g_log_inst
from . import binarize
from . import segcuts


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Binarize a classbench rule "
        "set and find the optimal column segmentation of its bit matrix")
    parser.add_argument("input_file", help="the classbench rule file to load")
    parser.add_argument("--input-dir", default=CLASSBENCH_DIR,
                        help="directory the input file is looked up in")
    parser.add_argument("--output-dir", default=DATA_DIR,
                        help="directory the rule matrix is written to")
    parser.add_argument("-j", "--jobs", type=int, default=os.cpu_count() or 1,
                        help="number of worker processes")
    parser.add_argument("-s", "--segment", action="store_true",
                        help="find the optimal segment cuts of the rule matrix")
    parser.add_argument("-m", "--from-matrix", action="store_true", help="skip "
            "binarize and segment the rule matrix already in the output dir")
    parser.add_argument("--exact", action="store_true", help="count distinct "
            "segment values by value instead of by hash")
    parser.add_argument("-l", "--log-file", default=LOG_FILE,
                        help="the file to write the running log to")
    parser.add_argument("-v", "--verbosity", action="store_true",
                        help="output the running log of the segmentation")
    args = parser.parse_args(argv)
    if args.jobs < 1:
        parser.error("--jobs must be at least 1")
    return args


def main(argv=None):
    args = parse_args(argv)

    if args.verbosity:
        g_log_inst.start(args.log_file, 'bitseg', 'DEBUG')
    else:
        g_log_inst.start(args.log_file, 'bitseg', 'INFO')

    input_path = os.path.join(args.input_dir, args.input_file)
    output_path = os.path.join(args.output_dir, "%s_mat" % args.input_file)
    source_path = output_path if args.from_matrix else input_path

    start_time = time.time()
    try:
        if args.from_matrix:
            ruleset = binarize.load_ruleset(output_path, BIT_LENGTH)
            segcuts.run(ruleset, BIT_LENGTH, args.jobs, args.exact)
        else:
            bitstrings = binarize.run(input_path, output_path, args.jobs)
            if args.segment:
                ruleset = binarize.build_ruleset(bitstrings, BIT_LENGTH)
                segcuts.run(ruleset, BIT_LENGTH, args.jobs, args.exact)
    except binarize.FormatError as e:
        g_log_inst.get().error("%s: %s" % (source_path, e))
        return 1
    print("====>  total time: %.03f s" % (time.time() - start_time))
    return 0


if __name__ == '__main__':
    sys.exit(main())
