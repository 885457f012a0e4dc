"""
Diagnostic history and plots for dyeflow runs
"""

import json
import numpy as np
import matplotlib.pyplot as plt
from typing import List, Dict
from ..numerics.projection import divergence
from ..physics.simulation_state import SimulationState
from ..physics.fluid_solver import StepResult

CHANNELS = ('r', 'g', 'b')


class DiagnosticRecorder:
    """
    Record per-step diagnostic quantities of a simulation
    """

    def __init__(self):
        """Initialize an empty history"""
        self.history: Dict[str, List[float]] = {
            'time': [],
            'mass_r': [],
            'mass_g': [],
            'mass_b': [],
            'energy': [],
            'max_velocity': [],
            'max_divergence': [],
            'pressure_iterations': [],
            'pressure_residual': []
        }

    def __len__(self) -> int:
        return len(self.history['time'])

    def update(self, state: SimulationState, result: StepResult):
        """
        Append the quantities of a completed step

        Args:
            state: State right after the step
            result: What the step reported
        """
        self.history['time'].append(state.time)
        for name, mass in zip(CHANNELS, result.mass):
            self.history[f'mass_{name}'].append(float(mass))
        self.history['energy'].append(state.kinetic_energy())
        self.history['max_velocity'].append(float(np.max(state.speed())))
        self.history['max_divergence'].append(
            float(np.max(np.abs(divergence(state.velocity_field))))
        )
        self.history['pressure_iterations'].append(result.projection.iterations)
        self.history['pressure_residual'].append(result.projection.residual)

    def relative_mass_drift(self) -> np.ndarray:
        """
        Per-channel (mass_last - mass_first) / mass_first, 0 for empty channels
        """
        drift = np.zeros(len(CHANNELS))
        if len(self) == 0:
            return drift
        for c, name in enumerate(CHANNELS):
            series = self.history[f'mass_{name}']
            if abs(series[0]) > 1e-12:
                drift[c] = (series[-1] - series[0]) / series[0]
        return drift

    def plot_time_series(self) -> plt.Figure:
        """
        Plot time series of diagnostic quantities

        Returns:
            Figure object
        """
        fig, axes = plt.subplots(2, 2, figsize=(12, 8))
        axes = axes.flatten()

        t = np.array(self.history['time'])

        ax = axes[0]
        ax.plot(t, self.history['energy'], 'b-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Energy')
        ax.set_title('Kinetic Energy')
        ax.grid(True, alpha=0.3)

        ax = axes[1]
        ax.plot(t, self.history['max_velocity'], 'g-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Max |v|')
        ax.set_title('Maximum Velocity')
        ax.grid(True, alpha=0.3)

        ax = axes[2]
        ax.semilogy(t, np.array(self.history['max_divergence']) + 1e-16, 'm-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Max |div v|')
        ax.set_title('Maximum Divergence')
        ax.grid(True, alpha=0.3)

        ax = axes[3]
        ax.plot(t, self.history['pressure_iterations'], 'c-', linewidth=2)
        ax.set_xlabel('Time')
        ax.set_ylabel('Sweeps')
        ax.set_title('Pressure Relaxation Sweeps')
        ax.grid(True, alpha=0.3)

        plt.tight_layout()
        return fig

    def plot_conservation_check(self) -> plt.Figure:
        """
        Relative dye mass change per channel

        Returns:
            Figure object
        """
        fig, ax = plt.subplots(1, 1, figsize=(10, 4))

        t = np.array(self.history['time'])
        for name, color in zip(CHANNELS, ('red', 'green', 'blue')):
            mass = np.array(self.history[f'mass_{name}'])
            if len(mass) > 0 and abs(mass[0]) > 1e-12:
                ax.plot(t, (mass - mass[0]) / mass[0] * 100, color=color, linewidth=2,
                        label=name.upper())
        ax.set_xlabel('Time')
        ax.set_ylabel('Mass Change (%)')
        ax.set_title('Dye Mass Conservation Check')
        ax.grid(True, alpha=0.3)
        if ax.get_legend_handles_labels()[0]:
            ax.legend()

        plt.tight_layout()
        return fig

    def save_diagnostics(self, filename: str):
        """
        Save diagnostic data to a JSON file

        Args:
            filename: Output filename
        """
        data = {}
        for key, values in self.history.items():
            data[key] = [float(v) for v in values]

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def load_diagnostics(self, filename: str):
        """
        Load diagnostic data from a JSON file

        Args:
            filename: Input filename
        """
        with open(filename, 'r') as f:
            data = json.load(f)

        self.history = data
