from setuptools import setup

setup(
    name='rereso',
    version='0.3',
    packages=['rereso', 'rereso.schemas', 'rereso.support'],
    package_data={
        'rereso.schemas': ['*.json5']
    },
    python_requires='>=3.9',
    install_requires=[
        'json5',
        'jsonschema>=4.18',
        'PyYAML',
        'referencing',
        'zstandard',
    ],
    extras_require={
        'test': ['pytest']
    },
    license='Apache-2.0',
    author='ReReSo authors',
    author_email='',
    description='Research software artifact descriptions: benchmark sets, tools, and log archives.'
)
