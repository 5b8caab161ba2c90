"""Route modules mounted by :func:`ad_targeting.api.main.create_app`."""
