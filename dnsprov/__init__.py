"""DNS-provisioned docker containers (dnsprov).

Reads the containers a host should run from DNS TXT records keyed by its
hostname and converges the local docker runtime to match:
 - ``<prefix>.<suffix>`` lists container names
 - ``<name>.<prefix>.<suffix>`` holds the ``docker run`` arguments for one container

Each invocation is one idempotent pass, meant to run at boot or from a timer.
"""
