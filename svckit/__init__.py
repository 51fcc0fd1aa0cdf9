"""Building blocks for backend services: collections, metrics, workers, Flask middleware, serving helpers and AMQP publishing."""

__version__ = "0.1.0"