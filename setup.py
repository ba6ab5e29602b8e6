#!/usr/bin/env python3

# python setup.py sdist --format=zip,gztar

import sys
import importlib.util

from setuptools import setup

MIN_PYTHON_VERSION = "3.8.0"
_min_python_version_tuple = tuple(map(int, (MIN_PYTHON_VERSION.split("."))))


if sys.version_info[:3] < _min_python_version_tuple:
    sys.exit("Error: descriptorkit requires Python version >= %s..." % MIN_PYTHON_VERSION)

with open('contrib/requirements/requirements.txt') as f:
    requirements = f.read().splitlines()

with open('contrib/requirements/requirements-tests.txt') as f:
    requirements_tests = f.read().splitlines()

# load version.py; needlessly complicated alternative to "imp.load_source":
version_spec = importlib.util.spec_from_file_location('version', 'descriptorkit/version.py')
version_module = version = importlib.util.module_from_spec(version_spec)
version_spec.loader.exec_module(version_module)

extras_require = {
    'tests': requirements_tests,
}


setup(
    name="descriptorkit",
    version=version.DESCRIPTORKIT_VERSION,
    python_requires='>={}'.format(MIN_PYTHON_VERSION),
    install_requires=requirements,
    extras_require=extras_require,
    packages=['descriptorkit'],
    package_dir={
        'descriptorkit': 'descriptorkit'
    },
    scripts=['run_descriptorkit'],
    entry_points={
        'console_scripts': ['descriptorkit = descriptorkit.commands:main'],
    },
    description="Bitcoin output script descriptor parser, validator and evaluator",
    license="MIT Licence",
    long_description="""Parse, validate and evaluate Bitcoin output script descriptors (BIP380-BIP389)""",
)
