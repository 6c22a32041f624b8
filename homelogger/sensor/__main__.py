"""BME280 polling service entrypoint.

Samples the BME280 sensor every polling interval, persists the readings
to the store, and notifies the operator when any stage fails.

Usage: python -m homelogger.sensor
"""

from homelogger.sensor.polling import main

if __name__ == "__main__":
    main()
