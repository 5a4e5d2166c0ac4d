from festreg.state_machines import team_state, round_state

__all__ = ["team_state", "round_state"]
