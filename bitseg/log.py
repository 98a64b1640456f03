#!/usr/bin/env python
# -*- coding:utf-8 -*-


"""
process-wide logger shared by the binarize and segmentation tasks.
"""


import os
import logging


CONSOLE_FMT = '%(levelname)s: %(message)s'
FILE_FMT = '%(asctime)s %(name)s %(levelname)s: %(message)s'


class LogInst(object):
    def __init__(self):
        self.logger = None

    # attach a file handler and a console handler to the named logger
    def start(self, log_file, name='bitseg', level='INFO'):
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level))
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.isdir(log_dir):
                os.makedirs(log_dir)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(logging.Formatter(FILE_FMT))
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FMT))
        logger.addHandler(console_handler)
        logger.propagate = False

        self.logger = logger
        return logger

    def get(self):
        if self.logger is None:
            # not started: fall back to a plain logger, handlers are left to
            # whoever configures logging
            self.logger = logging.getLogger('bitseg')
        return self.logger

    def stop(self):
        if self.logger is None:
            return
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger = None


g_log_inst = LogInst()
