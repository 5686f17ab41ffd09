"""Install flow: fetch, verify and apply a release to this host."""
