#!/usr/bin/env python
""" A JSON query engine for data grids with MongoDB as a back-end """

from setuptools import setup, find_packages

setup(
    name='mongogrid',
    version='1.0.0',
    license='BSD',
    description=__doc__,
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    keywords=['mongodb', 'aggregation', 'datagrid'],

    packages=find_packages(exclude=('tests',)),
    scripts=[],
    entry_points={
        'console_scripts': [
            'mongogrid = mongogrid.__main__:main',
        ],
    },

    python_requires='>= 3.8',
    install_requires=[
        'pymongo >= 4.0',
        'flask >= 2.2',
        'pydantic-settings >= 2.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
            'mongomock >= 4.1',
        ],
    },
    include_package_data=True,

    platforms='any',
    classifiers=[
        # https://pypi.python.org/pypi?%3Aaction=list_classifiers
        'Development Status :: 5 - Production/Stable',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Database',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
)
