#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import re
import warnings

from setuptools import setup

# read the version without importing `mocma`, which needs numpy
with open('mocma/mocma.py') as file_:
    __version__ = re.search(r'__version__ = "([^"]+)"', file_.read()).group(1)

long_description = "Multiobjective covariance matrix adaptation evolution strategy MO-CMA-ES"
try:
    with open('readme.md') as file_:
        long_description = file_.read()
except IOError:  # file not found
    warnings.warn("readme.md file not found")

setup(name='mocma',
      long_description=long_description,
      version=__version__.split()[0],
      description="The multiobjective evolution strategy MO-CMA-ES with"
                  " hypervolume, epsilon-indicator or approximated"
                  " hypervolume based selection.",
      long_description_content_type='text/markdown',
      author="The mocma developers",
      license="BSD",
      classifiers=[
          "Intended Audience :: Science/Research",
          "Intended Audience :: Education",
          "Topic :: Scientific/Engineering",
          "Topic :: Scientific/Engineering :: Mathematics",
          "Topic :: Scientific/Engineering :: Artificial Intelligence",
          "Operating System :: OS Independent",
          "Programming Language :: Python :: 3",
          "Development Status :: 4 - Beta",
          "Environment :: Console",
          "License :: OSI Approved :: BSD License",
      ],
      keywords=["optimization", "multi-objective", "MO-CMA-ES", "CMA-ES",
                "evolution strategy", "hypervolume"],
      packages=['mocma'],
      python_requires='>=3.8',
      install_requires=["cma>=3", "moarchiving", "numpy"],
      extras_require={'plot': ['matplotlib'],
                      'test': ['pytest']},
      )
