from setuptools import setup, find_packages

setup(
    name='csgforge',
    version='0.1.0',
    author='nassimberrada',
    author_email='your.email@example.com',
    description='A Python library for CSG scene graphs evaluated as signed distance fields.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    url='https://github.com/yourusername/csgforge',
    packages=find_packages(include=['csgforge', 'csgforge.*']),
    include_package_data=True,
    install_requires=[
        'numpy',
        'lark>=1.1',
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Graphics :: 3D Modeling',
        'Topic :: Scientific/Engineering :: Mathematics',
    ],
    python_requires='>=3.8',
)
