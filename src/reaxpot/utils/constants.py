"""constants shared by the ReaxPot energy terms and the parameter loader."""

CONSTANTS = {
    # Electrostatics
    "coulomb_kcalmol_A_e2": 332.06371,      # kcal·Å/(mol·e²)

    # Lone pairs
    "lone_pair_sharpness": 75.0,            # fixed logistic slope in E_lp

    # ffield conventions
    "ffield_cutoff_scale": 0.01,            # general line 30 is stored ×100
    "correction_flag_threshold": 0.001,     # ovcorr / 13corr switch value
}

const = CONSTANTS
