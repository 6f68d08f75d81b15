from setuptools import setup

setup(
    name='warp-acs',
    version='0.1',
    description='Ant Colony System for the TSP with lane-group parallel tour construction',
    packages=['algorithms', 'executers', 'kernels', 'pheromones', 'problems'],
    py_modules=['main'],
    python_requires='>=3.9',
    install_requires=['numpy', 'numba', 'scipy', 'tqdm'],
    extras_require={'test': ['pytest']},
)
