"""
Reference Element Sets

Element sets and published state vectors used by the demo and as documentation
of the propagator's expected output.

Reference Satellites:
    88888: near-Earth test case of Spacetrack Report #3 (SGP4 branch,
           period about 90 minutes).
    11801: deep-space test case of Spacetrack Report #3 (SDP4 branch,
           period about 630 minutes, eccentricity 0.73, non-resonant).

    The lines are the 69-column form with checksums. Expected vectors are
    given for t = 0, 360, 720, 1080 and 1440 minutes from epoch, position in
    km and velocity in km/s.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3:
    Models for Propagation of NORAD Element Sets.
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

from typing import Any, Dict, List

# Sweep used by the demo (minutes from epoch)
SWEEP_START_MIN: float = -720.0
SWEEP_END_MIN: float = 720.0
SWEEP_STEP_MIN: float = 10.0

# Agreement expected against the published vectors
POSITION_TOLERANCE_KM: float = 1.0
DEEP_SPACE_POSITION_TOLERANCE_KM: float = 10.0
VELOCITY_TOLERANCE_KM_S: float = 1.0e-3

REFERENCE_TIMES_MIN: List[float] = [0.0, 360.0, 720.0, 1080.0, 1440.0]

SGP4_TEST_TLE: Dict[str, Any] = {
    'name': 'SGP4 TEST',
    'norad_id': 88888,
    'line1': '1 88888U          80275.98708465  .00073094  13844-3  66816-4 0    87',
    'line2': '2 88888  72.8435 115.9689 0086731  52.6988 110.5714 16.05824518  1058',
    'model': 'sgp4',
    'expected_position_km': [
        [2328.97048951, -5995.22076416, 1719.97067261],
        [2456.10705566, -6071.93853760, 1222.89727783],
        [2567.56195068, -6112.50384522, 713.96397400],
        [2663.09078980, -6115.48229980, 196.39640427],
        [2742.55133057, -6079.67144775, -326.38095856],
    ],
    'expected_velocity_km_s': [
        [2.91207230, -0.98341546, -7.09081703],
        [2.67938992, -0.44829041, -7.22879231],
        [2.44024599, 0.09810869, -7.31995916],
        [2.19611958, 0.65241995, -7.36282432],
        [1.94850229, 1.21106251, -7.35619372],
    ],
}

SDP4_TEST_TLE: Dict[str, Any] = {
    'name': 'SDP4 TEST',
    'norad_id': 11801,
    'line1': '1 11801U          80230.29629788  .01431103  00000-0  14311-1      13',
    'line2': '2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13',
    'model': 'sdp4',
    'expected_position_km': [
        [7473.37066650, 428.95261765, 5828.74786377],
        [-3305.22537232, 32410.86328125, -24697.17675781],
        [14271.28759766, 24110.46411133, -4725.76837158],
        [-9990.05883789, 22717.35522461, -23616.89062501],
        [9787.86975097, 33753.34667969, -15030.81176758],
    ],
    'expected_velocity_km_s': [
        [5.10715413, 6.44468284, -0.18613096],
        [-1.30113538, -1.15131518, -0.28333528],
        [-0.32050445, 2.67984074, -2.08405289],
        [-1.01667246, -2.29026759, 0.72892364],
        [-1.09425066, 0.92358845, -1.52230928],
    ],
}

REFERENCE_SATELLITES: List[Dict[str, Any]] = [SGP4_TEST_TLE, SDP4_TEST_TLE]
