from setuptools import setup

setup(
    name='eapSim',
    version='1.0',
    packages=[
        'eapSim',
    ],
    url='https://osmocom.org/projects/pysim/wiki',
    license='GPLv2',
    author_email='simtrace@lists.osmocom.org',
    description='EAP-SIM/AKA/AKA\' identities and SIM authentication responses',
    install_requires=[
        "cmd2 >= 1.5.0, < 3.0",
        "construct >= 2.10.70",
        "bidict",
        "pyosmocom >= 0.0.9",
        "pyyaml >= 5.1",
        "pycryptodomex",
    ],
    scripts=[
        'eapSim-tool.py',
    ],
    zip_safe=False,
    python_requires=">=3.6",
)
