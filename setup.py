#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
import os.path as p

VERSION = open(p.join(p.dirname(p.abspath(__file__)), 'VERSION')).read().strip()

setup(
    name='wikirpc',
    version=VERSION,
    description='Remote method dispatch for a wiki, with plugin methods.',
    packages=find_packages(where='lib'),
    package_dir={'': 'lib'},
    python_requires='>=3.10',
    install_requires=[
        'pyzmq>=25',
        'Logbook>=1.7',
        'pymongo>=4.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
)
