#!/usr/bin/env python
# -*- encoding: utf-8 -*-

import io
import pathlib
from os.path import dirname
from os.path import join

from setuptools import find_packages
from setuptools import setup


def read(*names, **kwargs):
    with io.open(
        join(dirname(__file__), *names),
        encoding=kwargs.get('encoding', 'utf8')
    ) as fh:
        return fh.read()

# The directory containing this file
HERE = pathlib.Path(__file__).parent

# The text of the README file
README = (HERE / "README.md").read_text()


setup(
    name='tally_cruncher',
    version='0.1.0',
    description='Aggregate election round results and survey responses into chart-ready tables',
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages('src'),
    package_dir={'': 'src'},
    package_data={'tally_cruncher': ['*.json']},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        'Operating System :: Unix',
        'Operating System :: POSIX',
        'Operating System :: Microsoft :: Windows',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Topic :: Utilities',
    ],
    keywords=[
        'election', 'survey', 'tabulation',
    ],
    python_requires='>=3.8',
    install_requires=[
        'tqdm>=4.56.0',
        'pandas>=1.2.0',
        'requests>=2.25.0',
    ],
    extras_require={
        'test': [
            'pytest>=6.2.4',
        ],
    },
    entry_points={
        'console_scripts': [
            'tally-cruncher = tally_cruncher.cli:main',
        ]
    },
)
