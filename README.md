# gadsidm

Gravitational tree forces and self-interacting dark matter (SIDM)
scattering for collisionless N-body particles, in Python with NumPy.
Gravitational results from the tree walks are in units with G = 1;
`compute_gravity` multiplies by the configured constant.

## Modules

- **`gadsidm.kernel`** – `force_factor(mass, r, h)` and
  `potential_term(mass, r, h)` for the cubic-spline softened kernel
  (Newtonian beyond `h`), and `shortrange_force_table(ntab)` /
  `shortrange_potential_table(ntab)`, the erfc-based suppression factors of
  a TreePM force split sampled on u in (0, 3).
- **`gadsidm.softening`** – `Softenings`, a frozen dataclass of per-type
  softening lengths (gas, halo, disk, bulge, stars, bndry) with optional
  maximum physical values. `table(time, comoving)` caps the physical length
  in comoving runs, `force_softening(time, comoving)` gives 2.8 times those
  values, and `min_gas_hsml(time, comoving)` the lower bound on gas
  smoothing lengths.
- **`gadsidm.ewald`** – `nearest_image(dx, box_size)`, Ewald summation of
  the periodic potential (`ewald_psi`) and force (`ewald_force`)
  corrections, and `EwaldTable`, which can be computed with
  `EwaldTable.compute(box_size, size=64)`, written with `save(path)` as
  single-precision values, read back with `EwaldTable.load(path, box_size,
  size)`, and interpolated trilinearly with `force_correction(dx, dy, dz)`
  and `potential_correction(dx, dy, dz)`.
- **`gadsidm.external`** – Miyamoto–Nagai disc forces
  (`disk_radial_force`, `disk_vertical_force`), `hernquist_radial_force`,
  `nfw_radial_force` (constant central limit within three halo softenings),
  `halo_mass_over_r3` for a redshift-dependent host, and
  `MilkyWayPotential`, whose `acceleration(pos)` sums two stellar discs, two
  gas discs, a Hernquist bulge and an NFW halo. As the docstring states, the
  gas discs enter only the x component. Positions on the z axis raise
  `ValueError`.
- **`gadsidm.octree`** – `Particle` and `Node` dataclasses and `OctTree`.
  `OctTree.build(particles, force_softening, center=None, length=None,
  max_nodes=None, randomize_close=True)` inserts the particles, computes
  node masses, centres of mass, mean velocities, hmax and softening flags,
  and threads the tree; without `center`/`length` the root encloses all
  particles. Exceeding `max_nodes` raises `TreeBuildError`. `walk()` yields
  all indices in threaded order, and `dump_particles(path)` writes count,
  positions, velocities and IDs in binary.
- **`gadsidm.treeupdate`** – `recompute_moments(tree, force_softening)`
  refreshes node moments without rebuilding, `update_node_len(tree)`
  enlarges nodes after particles have drifted, and `update_node_hmax(tree)`
  raises node hmax values to cover gas smoothing lengths. The last two
  return the number of nodes changed.
- **`gadsidm.treewalk`** – `WalkSettings` (`err_tol_theta`,
  `err_tol_force_acc`, `box_size`, `ewald`) and `TreeWalker`, with
  `acceleration(tree, target)` returning the acceleration and the
  interaction count, `potential(tree, target)` and
  `ewald_correction(tree, target, old_acc)`. A non-zero `err_tol_theta`
  selects the Barnes–Hut criterion, zero the relative criterion based on
  the target's `old_acc`. `direct_acceleration(particles, target,
  force_softening, box_size=None, ewald=None)` sums all pairs directly as a
  reference.
- **`gadsidm.shortrange`** – `ShortRangeWalker(asmth, rcut=None,
  settings=None, ntab=1000)` for the erfc-suppressed short-range
  acceleration and potential; `rcut` defaults to 3.6 split scales.
- **`gadsidm.gravity`** – `GravitySettings` and
  `compute_gravity(particles, settings, tree=None, ti_current=0,
  external=None)`, which sets `grav_accel` on every particle whose
  `ti_endstep` equals `ti_current`, handles comoving and vacuum-energy
  terms, a selective no-gravity type mask and an optional external
  potential, and returns a `GravityReport` (active count, interactions, the
  tree, whether it was built, and the settings for the next step — with
  `type_of_opening_criterion=1` these switch to the relative criterion).
- **`gadsidm.scatterkernels`** – `get_wij`, `get_gij`, the Rutherford and
  Møller angular distributions `fcosth_rutherford` / `fcosth_moller`, and
  `shuffle_neighbours(neighbours, rng=None)`, which returns a shuffled copy.
- **`gadsidm.collision`** – `ScatterParams` (code units, cross section per
  unit mass `sigma_m` in cm²/g, down-scatter mass fraction `deltaf` and
  probability `ratio_ds`), `collision_basis(vr, vcm)`,
  `scatter_direction(basis, costh, phi)` and
  `scattered_velocities(vb, vt, direction, m1, m2, delta)`, which conserves
  momentum and converts lost rest mass into kinetic energy.
- **`gadsidm.scattering`** – `find_neighbours(particles, center, radius,
  box_size=None)` and `try_scatter(...)`, which lets one particle of type 1
  or 2 scatter off at most one approaching neighbour, updates velocities
  (and, for a down-scatter, types and masses) in place and returns a
  `ScatterEvent` or `None`.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
import random

from gadsidm.octree import OctTree, Particle
from gadsidm.treewalk import TreeWalker, WalkSettings
from gadsidm.gravity import GravitySettings, compute_gravity
from gadsidm.softening import Softenings

rng = random.Random(1)
particles = [
    Particle(pos=[rng.random() for _ in range(3)], mass=1.0, ptype=1)
    for _ in range(100)
]
softening = (0.01,) * 6

tree = OctTree.build(particles, softening)
walker = TreeWalker(WalkSettings(err_tol_theta=0.5))
acc, interactions = walker.acceleration(tree, particles[0])

settings = GravitySettings(softenings=Softenings(0.004, 0.004, 0.004, 0.004, 0.004, 0.004))
report = compute_gravity(particles, settings, ti_current=0)
print(report.active, report.interactions, particles[0].grav_accel)
```

## What it does not do

The package computes forces and scattering events for one step; it does
not integrate orbits over time, choose timesteps, read or write snapshot or
initial-condition files, or run as a command. There is no particle-mesh
long-range solver: `ShortRangeWalker` supplies only the short-range part of
a TreePM split. Everything runs in a single process, and `find_neighbours`
checks every particle rather than using the tree.