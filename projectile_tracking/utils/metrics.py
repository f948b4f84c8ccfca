"""
Metrics for evaluating estimator performance.
"""
import numpy as np


def compute_mse(estimated, true):
    """
    Compute Mean Squared Error.

    Parameters
    ----------
    estimated : ndarray
        Estimated values
    true : ndarray
        True values

    Returns
    -------
    float
        Mean squared error
    """
    return np.mean((estimated - true)**2)


def compute_rmse(estimated, true):
    """Compute Root Mean Squared Error."""
    return np.sqrt(compute_mse(estimated, true))


def compute_position_errors(estimates, truth):
    """
    Euclidean position error per step and object.

    Parameters
    ----------
    estimates : ndarray [T, 4] or [T, n_objects, 4]
        Estimated states
    truth : ndarray [T, n_objects, 4]
        True states

    Returns
    -------
    ndarray [T, n_objects]
        ||p_est - p_true|| at each step
    """
    estimates = np.asarray(estimates)
    truth = np.asarray(truth)
    if estimates.ndim == 2:
        estimates = estimates[:, np.newaxis, :]
    return np.linalg.norm(estimates[..., :2] - truth[..., :2], axis=-1)


def compute_symmetry_error(P_filt):
    """
    Compute symmetry error ||P - P'||_F / ||P||_F over all time steps.

    Parameters
    ----------
    P_filt : ndarray [T, n_x, n_x]
        Covariance matrices

    Returns
    -------
    ndarray [T]
        Relative symmetry error at each time step
    """
    T = P_filt.shape[0]
    sym_err = np.zeros(T)
    for t in range(T):
        P = P_filt[t]
        norm_P = np.linalg.norm(P, 'fro')
        if norm_P > 0:
            sym_err[t] = np.linalg.norm(P - P.T, 'fro') / norm_P
        else:
            sym_err[t] = 0.0
    return sym_err


def compute_min_eigenvalues(P_filt):
    """
    Compute minimum eigenvalue of P at each time step.

    Negative values indicate loss of positive semi-definiteness.
    """
    T = P_filt.shape[0]
    min_eig = np.zeros(T)
    for t in range(T):
        min_eig[t] = np.linalg.eigvalsh(P_filt[t]).min()
    return min_eig


def compute_nis(innovations, S_innov):
    """
    Compute Normalized Innovation Squared (NIS).

    NIS = (z - Hx)' S^{-1} (z - Hx)

    For a consistent filter, NIS should follow chi-squared(n_y) distribution.

    Parameters
    ----------
    innovations : ndarray [T, n_y]
        Innovation vectors (z - Hx)
    S_innov : ndarray [T, n_y, n_y]
        Innovation covariances

    Returns
    -------
    ndarray [T]
        NIS values at each time step
    """
    T = innovations.shape[0]
    nis = np.zeros(T)
    for t in range(T):
        v = innovations[t]
        nis[t] = v @ np.linalg.solve(S_innov[t], v)
    return nis


def summarize_run(arrays):
    """
    Summary statistics of a harness run.

    Parameters
    ----------
    arrays : dict
        Output of ``records_to_arrays``

    Returns
    -------
    dict
        'rmse_estimate' and 'rmse_observation' (position RMSE over observed
        steps), 'final_error', 'dropout_rate'; all NaN for a zero-step run
    """
    truth = arrays['truth']
    observed = arrays['observed']
    if len(observed) == 0:
        return {key: float('nan') for key in
                ('rmse_estimate', 'final_error', 'dropout_rate', 'rmse_observation')}

    est_err = compute_position_errors(arrays['estimates'], truth)

    summary = {
        'rmse_estimate': float(np.sqrt(np.mean(est_err**2))),
        'final_error': float(est_err[-1].max()),
        'dropout_rate': float(1.0 - observed.mean()),
    }
    if observed.any():
        obs_err = np.linalg.norm(arrays['observations'][observed] - truth[observed][..., :2], axis=-1)
        summary['rmse_observation'] = float(np.sqrt(np.mean(obs_err**2)))
    else:
        summary['rmse_observation'] = float('nan')
    return summary
