"""
GTA Driving AI - Source Package
===============================

Neural-network driver that maps captured game frames to driving commands.

Modules:
    maths/      - Dense Matrix engine
    ai/         - Network, agent, gradient and genetic training
    capture/    - Frame preprocessing
    recording/  - Recorded driving sessions (training data)
    utils/      - Logging
"""

__version__ = "1.0.0"
