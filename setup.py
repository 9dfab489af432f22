import os.path

from setuptools import find_packages, setup

with open(os.path.join(os.path.dirname(__file__), 'README.md')) as f:
    LONG_DESCRIPTION = f.read()
    DESCRIPTION = LONG_DESCRIPTION.splitlines()[0].lstrip('#').strip()

setup(
    name='kubestate',
    version='0.1.0',

    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    keywords=['kubernetes', 'client', 'watch', 'polling', 'python', 'k8s'],
    license='MIT',
    classifiers = [
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: Implementation :: CPython',
        'Topic :: Software Development :: Libraries',
    ],

    zip_safe=True,
    packages=find_packages(include=['kubestate', 'kubestate.*']),
    include_package_data=True,
    entry_points={
        'console_scripts': [
            'kubestate = kubestate.cli:main',
        ],
    },

    python_requires='>=3.10',
    install_requires=[
        'typing_extensions',            # 0.20 MB
        'python-json-logger>=3.1',      # 0.05 MB
        'click',                        # 0.60 MB
        'aiohttp',                      # 7.80 MB
        'aiohttp>=3.9.0; python_version>="3.12"',
        'pyyaml',                       # 0.90 MB
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio>=0.23,<1.0',
            'pytest-mock',
            'aresponses',
            'async-timeout',
        ],
    },
    package_data={"kubestate": ["py.typed"]},
)
