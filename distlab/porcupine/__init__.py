"""Linearizability checking of operation and event histories."""