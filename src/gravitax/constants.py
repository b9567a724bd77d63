"""
The `constants` module defines the physical and time constants used by the gravity models.
"""

from jax.numpy import pi as PI

# Mathematical Constants
"""
Constant to convert degrees to radians. Equal to 2pi/360. Units: *rad/deg*
"""
DEG2RAD = 2.0 * PI / 360.0

"""
Constant to convert radians to degrees. Equal to 360/2pi. Units: *deg/rad*
"""
RAD2DEG = 360.0 / (PI * 2.0)

# Time Constants

"""
Number of seconds in a Julian day. Units: *s*
"""
SECONDS_PER_DAY = 86400.0

"""
Number of days in a Julian year. Units: *days*
"""
DAYS_PER_JULIAN_YEAR = 365.25

"""
Number of seconds in a Julian year. Units: *s*
"""
SECONDS_PER_JULIAN_YEAR = DAYS_PER_JULIAN_YEAR * SECONDS_PER_DAY

# Earth Constants
"""
Earth's equatorial radius. [m]

References:

1. GGM05s Gravity Model
"""
R_EARTH = 6.378136300e6  # [m] GGM05s Value

"""
Earth's Gravitational constant [m^3/s^2]

References:

1. O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
Applications*, 2012.
"""
GM_EARTH = 3.986004415e14  # [m^3/s^2] GGM05s Value

"""
Earth axial rotation rate. [rad/s]

References:

1. D. Vallado, *Fundamentals of Astrodynamics and Applications (4th Ed.)*, p. 222, 2010
"""
OMEGA_EARTH = 7.292115146706979e-5  # [rad/s] Taken from Vallado 4th Ed page 222

"""
Earth's equatorial radius used by the EGM96 gravity model. [m]

References:

1. F. G. Lemoine et al., *The Development of the Joint NASA GSFC and NIMA
Geopotential Model EGM96*, NASA/TP-1998-206861, 1998.
"""
EGM96_EARTH_EQUATORIAL_RADIUS = 6378136.3  # [m]

"""
Earth's gravitational constant used by the EGM96 gravity model. [m^3/s^2]

References:

1. F. G. Lemoine et al., *The Development of the Joint NASA GSFC and NIMA
Geopotential Model EGM96*, NASA/TP-1998-206861, 1998.
"""
EGM96_EARTH_MU = 3.986004415e14  # [m^3/s^2]

"""
Fully normalized C20 of the EGM96 gravity model. [dimensionless]

References:

1. F. G. Lemoine et al., *The Development of the Joint NASA GSFC and NIMA
Geopotential Model EGM96*, NASA/TP-1998-206861, 1998.
"""
EGM96_EARTH_C20 = -4.84165371736e-4
