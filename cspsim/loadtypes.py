""" Enum classes to help against string constants.

Guidelines for enum classes:
    1. Write members names extensively, with no abbreviation, i.e., 'Watt' instead of 'W'.
    2. Attributes should follow the International System of Units (SI)
    [https://en.wikipedia.org/wiki/International_System_of_Units], i.e., for power the attribute is 'W'.
    3. Multipliers are only used where the plant scale demands them, i.e., 'Megawatt' for the
    thermal and electric power of a CSP plant.

"""
# clean
import enum


@enum.unique
class LoadTypes(str, enum.Enum):

    """Load type named constants so that they are the same everywhere and no typos happen."""

    ANY = "Any"

    ELECTRICITY = "Electricity"
    IRRADIANCE = "Irradiance"
    SPEED = "Speed"
    HEATING = "Heating"

    TEMPERATURE = "Temperature"
    TIME = "Time"
    MASS_FLOW = "MassFlow"

    CONTROL_SIGNAL = "ControlSignal"
    OPERATING_MODE = "OperatingMode"
    ON_OFF = "OnOff"  # encoding: 0 means off and 1 means on


@enum.unique
class Units(str, enum.Enum):

    """Physical units for inputs and outputs."""

    # Unphysical
    ANY = "-"
    PERCENT = "%"
    BINARY = "binary"

    # Power
    WATT = "W"
    MEGAWATT = "MW"

    # Power per area
    WATT_PER_SQUARE_METER = "W per square meter"

    # Speed
    METER_PER_SECOND = "m/s"

    # Energy
    KWH = "kWh"
    MWH = "MWh"

    # Mass flow
    KG_PER_SEC = "kg/s"

    # Temperature
    CELSIUS = "°C"
    KELVIN = "K"

    # Degrees
    DEGREES = "Degrees"

    # Time
    SECONDS = "s"
