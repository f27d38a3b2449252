"""
Strategy interfaces and implementations for proposing transfer actions.

Defines the strategy protocol (snapshot in, actions out) and simple concrete
policies used for demonstrations and tests.
"""
