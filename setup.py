import os
from setuptools import setup

version = '0.1.0'

ROOT_DIR = os.path.dirname(os.path.abspath(__file__))
try:
    with open(os.path.join(ROOT_DIR, 'README.md')) as f:
        README = f.read()
except IOError:
    README = ''

try:
    with open(os.path.join(ROOT_DIR, 'requirements.txt')) as f:
        INSTALL_REQUIRES = [line.strip() for line in f.readlines() if line.strip()]
except IOError:
    INSTALL_REQUIRES = []


setup(
    name='tensor-data',
    version=version,
    author='Aleksandr Susha',
    author_email='isushik94@gmail.com',
    description='Dataset API with eager and session-driven iteration for PyTorch tensors',
    long_description=README,
    package_dir={'tensor_data': 'src/tensor_data',
                 'tensor_data._sources': 'src/tensor_data/_sources', 'tensor_data._ops': 'src/tensor_data/_ops'},
    packages=['tensor_data', 'tensor_data._sources', 'tensor_data._ops'],
    install_requires=INSTALL_REQUIRES,
    extras_require={'test': ['pytest']},
    python_requires='>=3.9',
    keywords=['pytorch', 'torch', 'deep learning', 'data api', 'dataset', 'iterator', 'session'],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Libraries :: Python Modules',
    ],
)
